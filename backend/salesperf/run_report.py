#!/usr/bin/env python3
"""
Compute sales performance findings for a report request.

Usage:
    cd backend
    python -m salesperf.run_report --input request.json

Or with custom parameters:
    python -m salesperf.run_report \
        --input request.json \
        --subject customers \
        --policy customers_v1 \
        --output findings.json \
        --pretty
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv
from pydantic import ValidationError

# Load environment variables
load_dotenv()

from salesperf.core.config import settings
from salesperf.core.policy_config import PolicyConfigManager, ReportSubject
from salesperf.analytics.engine import SalesPerformanceEngine
from salesperf.ingestion.payload import ReportRequest

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_INVALID = 2

DEFAULT_POLICIES = {
    ReportSubject.PRODUCT_GROUPS: settings.DEFAULT_POLICY_PRODUCT_GROUPS,
    ReportSubject.CUSTOMERS: settings.DEFAULT_POLICY_CUSTOMERS,
}


def load_policy(manager: PolicyConfigManager, subject: ReportSubject, policy_id: str = None):
    """Named policy, else the configured default for the subject."""
    policy_id = policy_id or DEFAULT_POLICIES[subject]
    policy = manager.get_policy(policy_id)
    if policy is None:
        logger.warning("Policy %s not found, using first policy for %s", policy_id, subject.value)
        policy = manager.policy_for_subject(subject)
    return policy


def run(request: ReportRequest, policy_id: str = None, subject: ReportSubject = None):
    """Validate the request into domain objects and compute findings."""
    inputs = request.to_inputs()
    subject = ReportSubject(subject or inputs.subject)

    manager = PolicyConfigManager(settings.POLICY_DIR)
    policy = load_policy(manager, subject, policy_id).with_overrides(**inputs.policy_overrides)

    engine = SalesPerformanceEngine(policy)
    return engine.compute_findings(
        inputs.schema,
        inputs.volume,
        inputs.amount,
        inputs.base_period_index,
        subject=subject,
        merge_rules=inputs.merge_rules,
    )


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description="Compute sales performance findings for a report request"
    )
    parser.add_argument(
        "--input", "-i",
        required=True,
        help="Report request JSON file"
    )
    parser.add_argument(
        "--subject", "-s",
        choices=[s.value for s in ReportSubject],
        default=None,
        help="Override the subject named in the request"
    )
    parser.add_argument(
        "--policy", "-p",
        default=None,
        help="Policy id (default: the configured policy for the subject)"
    )
    parser.add_argument(
        "--output", "-o",
        default=None,
        help="Write findings JSON here instead of stdout"
    )
    parser.add_argument(
        "--pretty",
        action="store_true",
        help="Indent the JSON output"
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        with open(args.input, 'r') as f:
            payload = json.load(f)
        request = ReportRequest.model_validate(payload)
        findings = run(request, policy_id=args.policy, subject=args.subject)
    except (OSError, json.JSONDecodeError) as e:
        logger.error("Could not read %s: %s", args.input, e)
        return EXIT_INVALID
    except ValidationError as e:
        logger.error("Invalid report request:\n%s", e)
        return EXIT_INVALID
    except ValueError as e:
        logger.error("Invalid report request: %s", e)
        return EXIT_INVALID

    text = json.dumps(findings.to_dict(), indent=2 if args.pretty else None, default=str)
    if args.output:
        Path(args.output).write_text(text)
        logger.info("Findings written to %s", args.output)
    else:
        sys.stdout.write(text + "\n")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
