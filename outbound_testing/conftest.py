"""
conftest.py – fixtures and the flow report for outbound_testing.

Every test outcome is tagged with the transfer mode it ran (when parametrised),
whether it hit the live account, and, for failures, the flow stage that broke
(OutboundTestError.stage).  At session end the tally is written to
reports/outbound_flow_report.json and failures are summarised per stage.
"""
import json
import os
from collections import Counter
from datetime import datetime, timezone
from types import SimpleNamespace

import pytest

from outbound_testing.fakes import FakeEnvTwilio, FakeWorker
from outbound_testing.outbound_common_helpers import OutboundCommonHelpers

_HERE = os.path.dirname(os.path.abspath(__file__))
REPORT_DIR = os.environ.get('OUTBOUND_REPORT_DIR', os.path.join(_HERE, "reports"))

_flow_results: list[dict] = []


def _failed_stage(excinfo) -> str | None:
    if excinfo is None:
        return None
    return getattr(excinfo.value, 'stage', type(excinfo.value).__name__)


@pytest.hookimpl(hookwrapper=True)
def pytest_runtest_makereport(item, call):
    outcome = yield
    report = outcome.get_result()
    if report.when != "call" and not (report.when == "setup" and report.skipped):
        return

    params = getattr(item, 'callspec', None)
    _flow_results.append({
        "test": item.name,
        "transfer_mode": params.params.get('transfer_mode') if params else None,
        "live": item.get_closest_marker('integration') is not None,
        "outcome": report.outcome.upper(),
        "failed_stage": _failed_stage(call.excinfo) if report.failed else None,
    })


def pytest_sessionfinish(session, exitstatus):
    if not _flow_results:
        return

    outcomes = Counter(r["outcome"] for r in _flow_results)
    stages   = Counter(r["failed_stage"] for r in _flow_results if r["failed_stage"])

    os.makedirs(REPORT_DIR, exist_ok=True)
    json_path = os.path.join(REPORT_DIR, "outbound_flow_report.json")
    with open(json_path, "w") as fh:
        json.dump({
            "generated_at": datetime.now(timezone.utc).isoformat(),
            "outcomes": dict(outcomes),
            "failures_by_stage": dict(stages),
            "tests": _flow_results,
        }, fh, indent=2)

    print(f"\n[REPORT] {dict(outcomes)}  ->  {json_path}")
    for stage, count in stages.most_common():
        print(f"   > FAIL x{count}: {stage}")


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def credentials():
    return SimpleNamespace(
        CUSTOMER_NUMBER='+15550000001',
        FLEX_CC_NUMBER='+15550000100',
        ALICE_NUMBER='+15550000201',
        BOB_NUMBER='+15550000202',
        MULTI_TASK_WORKSPACE_SID='WS001',
        MULTI_TASK_WORKFLOW_SID='WW001',
        MULTI_TASK_QUEUE_SID='WQ001',
        MULTI_TASK_CONNECT_ACTIVITY_SID='WA_CONNECT',
        MULTI_TASK_ALICE_SID='WK_ALICE',
        MULTI_TASK_BOB_SID='WK_BOB',
    )


@pytest.fixture
def env_twilio():
    return FakeEnvTwilio()


@pytest.fixture
def helpers(env_twilio, credentials):
    return OutboundCommonHelpers(env_twilio, credentials=credentials, status_check_delay=0)


@pytest.fixture
def worker(credentials):
    return FakeWorker(sid=credentials.MULTI_TASK_ALICE_SID)
