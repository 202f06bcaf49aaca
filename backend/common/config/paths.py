"""Path configuration for the backend."""
import os
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parents[2]
load_dotenv(dotenv_path=BASE_DIR / ".env")

DATA_DIR = BASE_DIR / "data"
DEFAULT_BUS_ROUTES_PATH = DATA_DIR / "bus_routes.json"
BUS_ROUTES_PATH = Path(os.getenv("BUS_ROUTES_PATH", "").strip() or DEFAULT_BUS_ROUTES_PATH)
