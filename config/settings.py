"""Project-wide settings and defaults."""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()  # Load .env file if present

# Base paths
PROJECT_ROOT = Path(__file__).resolve().parent.parent

# Key material
LICENCE_KEYS_DIR = Path(os.environ.get("LICENCE_KEYS_DIR", PROJECT_ROOT / "data" / "keys"))
LICENCE_PUBLIC_KEY = os.environ.get("LICENCE_PUBLIC_KEY", "public-key.der")
LICENCE_PRIVATE_KEY = os.environ.get("LICENCE_PRIVATE_KEY", "private-key.der")
LICENCE_SIGNATURE_HASH = os.environ.get("LICENCE_SIGNATURE_HASH", "sha256")
DEFAULT_KEY_SIZE = 2048

# Product keys
PRODUCT_KEY_SIGNATURE = os.environ.get(
    "PRODUCT_KEY_SIGNATURE",
    "0e3623140a072447203a3b2a042e300c173e280f32191e102b213d3739314a034540152c34082712382226254f060b29",
)
PRODUCT_KEY_ALPHABET = os.environ.get("PRODUCT_KEY_ALPHABET", "32")
PRODUCT_KEY_LENGTH = int(os.environ.get("PRODUCT_KEY_LENGTH", "35"))
PRODUCT_KEY_PASSES = int(os.environ.get("PRODUCT_KEY_PASSES", "3"))
PRODUCT_KEY_GROUP_SIZE = int(os.environ.get("PRODUCT_KEY_GROUP_SIZE", "5"))

# Logging
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
