"""tms.integrations — External service gateway modules.

All outbound HTTP calls to Rodik must go through a gateway in this
package, never via bare `requests` calls in services or blueprints.

Every call is:
  - Authenticated (bearer token injected by the gateway)
  - Bounded by a fixed timeout
  - Returned as a GatewayResult; the gateway never raises on HTTP errors

Current gateways:
  rodik_gateway.RodikGateway — Rodik REST API (requirements, test results)
"""
