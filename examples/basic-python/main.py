"""
Basic Python example for Stripe webhook verification

This is a minimal working example showing how to:
- Load signing secrets from the environment
- Verify deliveries on a FastAPI endpoint
- Dispatch verified events by type

Run with:
    pip install "stripe-webhook[examples]"
    uvicorn main:app --port 8000
"""

import logging

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, Request

from stripe_webhook import (
    InvalidHeader,
    VerificationConfig,
    WebhookError,
    WebhookVerifier,
    events
)

# Load environment variables
load_dotenv()

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("stripe-example")

verifier = WebhookVerifier(VerificationConfig.from_env())

app = FastAPI()


@app.post("/webhooks/stripe")
async def stripe_webhook(request: Request):
    # Raw body: the signature covers the exact bytes Stripe sent
    body = await request.body()

    try:
        event = verifier.verify_request(body, request.headers).decode()
    except InvalidHeader:
        raise HTTPException(status_code=400, detail="invalid signature header")
    except WebhookError:
        raise HTTPException(status_code=400, detail="invalid signature")
    except ValueError:
        raise HTTPException(status_code=400, detail="invalid payload")

    logger.info(f"Received {event.type} ({event.id})")

    if event.type == events.CHECKOUT_SESSION_COMPLETED:
        handle_checkout_completed(event.data.object)
    elif event.type == events.CUSTOMER_SUBSCRIPTION_UPDATED:
        changed = ", ".join(event.data.previous_attributes) or "nothing"
        logger.info(f"Subscription {event.data.object.get('id')} changed: {changed}")
    else:
        logger.info(f"Unhandled event type: {event.type}")

    return {"received": True}


def handle_checkout_completed(session):
    logger.info(f"Checkout completed for {session.get('customer_email')}")
