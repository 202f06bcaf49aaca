"""Configuration module - re-exports all config values."""
from .paths import *
from .routes import *
from .simulation import *
