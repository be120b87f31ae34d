"""
Credentials and fixed identifiers for the outbound conference/transfer suite.

Values are read from the environment; a .env file in this folder takes
precedence over the repo-root .env, and neither overrides variables that are
already exported in the shell.
"""
import os

from dotenv import load_dotenv

# ---------------------------------------------------------------------------
# Path resolution – always relative to this file, regardless of cwd
# ---------------------------------------------------------------------------
_HERE      = os.path.dirname(os.path.abspath(__file__))
_REPO_ROOT = os.path.dirname(_HERE)

load_dotenv(os.path.join(_HERE,      ".env"), override=False)
load_dotenv(os.path.join(_REPO_ROOT, ".env"), override=False)

# ---------------------------------------------------------------------------
# REST credentials
# ---------------------------------------------------------------------------
ACCOUNT_SID = os.environ.get('TWILIO_ACCOUNT_SID', '')
AUTH_TOKEN  = os.environ.get('TWILIO_AUTH_TOKEN', '')

# ---------------------------------------------------------------------------
# Phone numbers
# ---------------------------------------------------------------------------
CUSTOMER_NUMBER = os.environ.get('CUSTOMER_NUMBER', '')
FLEX_CC_NUMBER  = os.environ.get('FLEX_CC_NUMBER', '')
ALICE_NUMBER    = os.environ.get('ALICE_NUMBER', '')
BOB_NUMBER      = os.environ.get('BOB_NUMBER', '')

# ---------------------------------------------------------------------------
# TaskRouter identifiers for the multi-task workspace
# ---------------------------------------------------------------------------
MULTI_TASK_WORKSPACE_SID        = os.environ.get('MULTI_TASK_WORKSPACE_SID', '')
MULTI_TASK_WORKFLOW_SID         = os.environ.get('MULTI_TASK_WORKFLOW_SID', '')
MULTI_TASK_QUEUE_SID            = os.environ.get('MULTI_TASK_QUEUE_SID', '')
MULTI_TASK_CONNECT_ACTIVITY_SID = os.environ.get('MULTI_TASK_CONNECT_ACTIVITY_SID', '')
MULTI_TASK_ALICE_SID            = os.environ.get('MULTI_TASK_ALICE_SID', '')
MULTI_TASK_BOB_SID              = os.environ.get('MULTI_TASK_BOB_SID', '')

# Pause before re-querying conference state (conference/participant updates lag)
STATUS_CHECK_DELAY_MS = int(os.environ.get('STATUS_CHECK_DELAY_MS') or 2000)


def has_credentials() -> bool:
    return bool(ACCOUNT_SID and AUTH_TOKEN)
