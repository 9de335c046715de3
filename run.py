"""Local development entry point for the lead board API.

Usage:
    python run.py

Settings come from .env (see leadboard/config.py). With the default
STORE_BACKEND=sql the board lives in a local SQLite file; run
`flask seed-stages` once to create the default pipeline.
"""

import os

from dotenv import load_dotenv

load_dotenv()  # Load .env before anything else

from leadboard import create_app

app = create_app()

if __name__ == "__main__":
    app.run(debug=True, host="127.0.0.1", port=int(os.environ.get("PORT", 5001)))
