import os
import sys
import tempfile
from pathlib import Path

# Ensure project root is importable in local and CI runs.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

# Force test config before importing app modules.
TEST_DB_PATH = Path(tempfile.gettempdir()) / "prop_risk_test.db"
if TEST_DB_PATH.exists():
    TEST_DB_PATH.unlink()

os.environ["DATABASE_URL"] = f"sqlite:///{TEST_DB_PATH}"
os.environ["RISK_DAY_TIMEZONE"] = "UTC"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["MONITOR_MAX_WORKERS"] = "1"
os.environ["PUSH_GATEWAY_URL"] = ""
os.environ["TELEGRAM_BOT_TOKEN"] = ""
os.environ["TELEGRAM_CHAT_ID"] = ""
