"""Local development entry point.

Usage:
    python run.py

Serves the webhook endpoint on http://localhost:5001/stripe/webhook.
Point `stripe listen --forward-to localhost:5001/stripe/webhook` at it and
put the printed signing secret in .env as STRIPE_WEBHOOK_SECRET.
"""

from dotenv import load_dotenv

load_dotenv()  # Load .env before anything else

from authorpage import create_app  # noqa: E402

app = create_app()

if __name__ == "__main__":
    app.run(debug=True, host="0.0.0.0", port=5001)
