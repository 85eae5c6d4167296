"""
ASGI Entry Point for the xmdedit API.

This module exposes the `app` object required by ASGI servers (Uvicorn/Gunicorn).
It loads environment variables from `.env` before the application factory
runs, so the edit model keys are visible to the LLM client.

Usage
-----
Run via the module entry point:
    $ python -m xmdedit.api.server

Or via uvicorn directly:
    $ uvicorn xmdedit.api.server:app --reload
"""

import os
from pathlib import Path

import uvicorn
from dotenv import load_dotenv

from xmdedit.api.app import create_app
from xmdedit.core.settings import settings
from xmdedit.llm.models import get_model

load_dotenv(dotenv_path=Path(".env"))

app = create_app()

_PROVIDER_KEYS = {
    "openai": "OPENAI_API_KEY",
    "google": "GOOGLE_API_KEY",
    "deepseek": "DEEPSEEK_API_KEY",
}


def main() -> None:
    """Run the API server locally for development."""
    config = get_model(settings.edit_model)
    needed = _PROVIDER_KEYS.get(config.provider, "OPENAI_API_KEY")

    print(f"{'[ Edit model ]':=^60}")
    print(f"{'alias':<20} : {settings.edit_model}")
    print(f"{'model':<20} : {config.name} ({config.provider})")
    for var_name in _PROVIDER_KEYS.values():
        value = os.getenv(var_name, "")
        marker = " (required)" if var_name == needed else ""
        status = f"✅ Loaded ({value[:8]}...)" if value else "❌ Missing"
        print(f"{var_name:<20} : {status}{marker}")
    print(f"{'='*60}\n")

    uvicorn.run(
        "xmdedit.api.server:app",
        host=os.getenv("XMDEDIT_HOST", "127.0.0.1"),
        port=int(os.getenv("XMDEDIT_PORT", "8000")),
        reload=settings.is_dev,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
