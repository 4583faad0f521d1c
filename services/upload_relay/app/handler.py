"""Serverless entry point (AWS Lambda, Netlify and Vercel style events).

Mangum translates the platform event into an ASGI request, decoding the body
when the event sets ``isBase64Encoded``, and turns the response back into the
``{statusCode, headers, body}`` shape the platform expects.
"""

from mangum import Mangum

from services.upload_relay.app.config import get_settings
from services.upload_relay.app.main import app

# Lifespan events don't run per invocation in serverless runtimes
handler = Mangum(app, lifespan="off", api_gateway_base_path=get_settings().api_base_path)
