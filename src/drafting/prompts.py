"""
src/drafting/prompts.py
───────────────────────
On-demand drafting for a single alert: root-cause analysis suggestions and
proactive merchant emails.

Failures never raise; they come back as the content of the DraftResult.
"""
from __future__ import annotations

from dataclasses import dataclass

from loguru import logger

from src.data.models import Alert
from src.drafting.client import DraftingClient
from src.errors import DraftingFailure

RCA_SYSTEM_PROMPT = (
    "You are a Senior Technical Consultant at a global payments company. Your task is to "
    "provide an initial, rapid assessment of a terminal anomaly based on provided metrics. "
    "Be precise and avoid generic advice."
)

EMAIL_SYSTEM_PROMPT = (
    "You are a customer communications specialist for a payments company. Draft proactive "
    "alerts that are clear, professional, and focus on immediate action steps for the "
    "merchant to minimize business impact."
)


@dataclass(frozen=True)
class DraftResult:
    title: str
    content: str
    failed: bool = False


def rca_prompt(alert: Alert) -> str:
    s = alert.source
    return (
        f"Analyze this anomaly data for a payment terminal: Issue Type: {alert.severity.value}. "
        f"Merchant: {alert.merchant_name}. Terminal ID: {alert.terminal_id}. "
        f"Transactions: {s.transactions}. Errors: {s.errors}. Error Rate: {s.error_rate}%. "
        f"Connectivity: {s.connectivity.value}. Provide a concise, highly probable Root Cause "
        "Analysis (RCA) and list the top 3 immediate next steps for the Technical Consultant. "
        "Format the output with clear headings."
    )


def email_prompt(alert: Alert) -> str:
    s = alert.source
    return (
        f"Draft a professional, empathetic, and urgent email to the merchant, {alert.merchant_name}, "
        f"regarding the following detected issue: Terminal ID: {alert.terminal_id}. "
        f"Issue: {alert.message}. Key data: Transactions={s.transactions}, Errors={s.errors}, "
        f"Connectivity={s.connectivity.value}. The email should inform them we detected the "
        "problem, apologize for potential disruption, and ask them to perform one simple action "
        "(e.g., reboot the terminal or check the WiFi router) while we assign a technical "
        "consultant. Keep it concise and under 150 words."
    )


def _draft(client: DraftingClient, title: str, action: str, system_prompt: str, user_prompt: str) -> DraftResult:
    if not client.configured:
        return DraftResult(
            title="Drafting API Error",
            content=(
                f"Cannot {action}: GEMINI_API_KEY is missing. "
                "Please configure it in your environment settings."
            ),
            failed=True,
        )
    try:
        return DraftResult(title=title, content=client.generate(system_prompt, user_prompt))
    except DraftingFailure as exc:
        logger.warning("Drafting failed for '{}': {}", title, exc)
        return DraftResult(title=title, content=f"Failed to {action}: {exc}", failed=True)


def draft_rca(client: DraftingClient, alert: Alert) -> DraftResult:
    return _draft(
        client,
        f"RCA Suggestion for {alert.terminal_id}",
        "generate RCA",
        RCA_SYSTEM_PROMPT,
        rca_prompt(alert),
    )


def draft_merchant_email(client: DraftingClient, alert: Alert) -> DraftResult:
    return _draft(
        client,
        f"Draft Proactive Email for {alert.merchant_name}",
        "draft communication",
        EMAIL_SYSTEM_PROMPT,
        email_prompt(alert),
    )
