"""Core module initialization - loads environment variables."""

from pathlib import Path

from dotenv import load_dotenv

# Load .env file on module import so MODEL_TOKEN and friends are available
# before the gateway configuration is built
_env_loaded = False
if not _env_loaded:
    for path in [Path.cwd() / ".env"] + [p / ".env" for p in Path.cwd().parents]:
        if path.exists():
            load_dotenv(path, override=False)
            _env_loaded = True
            break
