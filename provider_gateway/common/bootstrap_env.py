# provider_gateway/common/bootstrap_env.py
from __future__ import annotations

from dotenv import load_dotenv, find_dotenv

# Only fill missing vars; don't overwrite ones already set in the shell/CI
load_dotenv(find_dotenv(usecwd=True), override=False)
