#!/usr/bin/env python3
"""Terminal reports and actions for the donor ledger.

Usage:
    donor-ledger donors                          # Engagement-ranked donors
    donor-ledger donors --assess-fraud           # ...with a fraud verdict per donor
    donor-ledger trend --granularity weekly      # Donation totals per week
    donor-ledger top-donors                      # Today's (or the latest day's) top 3
    donor-ledger feed --ticks 3                  # Live feed after 3 rotations
    donor-ledger totals                          # Credit / debit / balance
    donor-ledger history --search wallet         # Merged ledger, newest first
    donor-ledger receipt pay-9                   # Receipt for one payment
    donor-ledger campaign status                 # Active emergency campaign
    donor-ledger campaign launch --name "Flood Relief" --description "..." --goal 50000
    donor-ledger campaign end camp-1a2b3c4d5e6f
    donor-ledger thank-you "Aisha Rahman"        # Draft a thank-you email
    donor-ledger chat "How do refunds work?"     # Ask the admin assistant

Global options: --data-dir, --today YYYY-MM-DD, --log-level.
"""

import argparse
import datetime as dt
import logging
import sys
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from rich.console import Console, Group
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from donor_ledger.config import DashboardConfig, get_data_dir, load_config
from donor_ledger.constants import ORGANIZATION_ADDRESS, ORGANIZATION_NAME
from donor_ledger.db import JsonFileStore, LedgerStore
from donor_ledger.llm.flow import GenerationError
from donor_ledger.scorers import (
    Granularity,
    compute_donor_rollups,
    compute_trend,
    select_live_feed,
    select_top_donors_for_date,
)
from donor_ledger.services.campaign_controller import CampaignController, CampaignError, CampaignRequest
from donor_ledger.services.content_service import ContentService
from donor_ledger.services.fraud_detection_service import FraudDetectionService
from donor_ledger.services.ledger_service import LedgerService
from donor_ledger.utils.logger import configure_global_logging

console = Console()
logger = logging.getLogger(__name__)


class Context:
    """Everything a command needs, built once from the global options."""

    def __init__(self, data_dir: Path, today: dt.date, config: DashboardConfig):
        self.today = today
        self.config = config
        self.ledger = LedgerStore(JsonFileStore(data_dir), today=lambda: today)
        self.ledger_service = LedgerService(self.ledger, today=lambda: today)

    def content_service(self) -> ContentService:
        return ContentService(model=self.config.content_model)


def _money(amount: float) -> str:
    return f"₹{amount:,.2f}"


# =============================================================================
# Commands
# =============================================================================


def cmd_donors(args, ctx: Context) -> None:
    transactions = ctx.ledger.payments.get_all()
    rollups = compute_donor_rollups(transactions, ctx.today)
    if not rollups:
        console.print("[yellow]No donations recorded[/yellow]")
        return

    verdicts = {}
    if args.assess_fraud:
        console.print(f"Assessing {len(rollups)} donors for suspicious activity...")
        verdicts = FraudDetectionService(config=ctx.config).assess_donors(rollups, transactions)

    table = Table(title=f"Donors by engagement (as of {ctx.today.isoformat()})")
    table.add_column("Donor", style="cyan")
    table.add_column("Total", justify="right")
    table.add_column("Gifts", justify="right")
    table.add_column("Last gift")
    table.add_column("Score", justify="right")
    if args.assess_fraud:
        table.add_column("Fraud check")

    for rollup in rollups:
        row = [
            escape(rollup.name),
            _money(rollup.total_donated),
            str(rollup.donation_count),
            rollup.last_donation_date.isoformat(),
            str(rollup.engagement_score),
        ]
        if args.assess_fraud:
            verdict = verdicts.get(rollup.name)
            if verdict is None:
                row.append("[dim]-[/dim]")
            elif verdict.is_suspicious:
                row.append(f"[red]SUSPICIOUS[/red] {escape(verdict.reason)}")
            else:
                row.append(f"[green]OK[/green] {escape(verdict.reason)}")
        table.add_row(*row)

    console.print(table)


def cmd_trend(args, ctx: Context) -> None:
    buckets = compute_trend(ctx.ledger.payments.get_all(), args.granularity, ctx.today)
    table = Table(title=f"Donations ({args.granularity})")
    table.add_column("Period", style="cyan")
    table.add_column("Total", justify="right")
    for bucket in buckets:
        table.add_row(bucket.label, _money(bucket.total))
    if not buckets:
        console.print("[yellow]No donations in this window[/yellow]")
        return
    console.print(table)


def cmd_top_donors(args, ctx: Context) -> None:
    result = select_top_donors_for_date(ctx.ledger.payments.get_all(), ctx.today)
    if result.date_used is None:
        console.print("[yellow]No donations recorded[/yellow]")
        return

    title = "Top donors today" if result.date_used == ctx.today else f"Top donors on {result.date_used.isoformat()}"
    table = Table(title=title)
    table.add_column("#", justify="right")
    table.add_column("Donor", style="cyan")
    table.add_column("Amount", justify="right")
    for rank, donor in enumerate(result.donors, start=1):
        table.add_row(str(rank), escape(donor.name), _money(donor.amount))
    console.print(table)


def cmd_feed(args, ctx: Context) -> None:
    window = select_live_feed(ctx.ledger.payments.get_all(), ctx.config.feed_window, args.ticks)
    table = Table(title=f"Live donations (after {args.ticks} tick(s))")
    table.add_column("Donor", style="cyan")
    table.add_column("Amount", justify="right")
    table.add_column("Project")
    table.add_column("Date")
    for tx in window:
        table.add_row(
            escape(tx.donor_name),
            _money(tx.amount),
            escape(tx.project_name or tx.project_id),
            tx.date.isoformat(),
        )
    console.print(table)


def cmd_totals(args, ctx: Context) -> None:
    totals = ctx.ledger_service.totals()
    summary = (
        f"Total credit: {_money(totals.total_credit)}\n"
        f"Total debit:  {_money(totals.total_debit)}\n"
        f"Balance:      {_money(totals.balance)}"
    )
    console.print(Panel(summary, title="Ledger totals", border_style="blue"))


def cmd_history(args, ctx: Context) -> None:
    entries = ctx.ledger_service.history(args.search)
    table = Table(title="Ledger history" + (f" matching '{escape(args.search)}'" if args.search else ""))
    table.add_column("Date")
    table.add_column("Type")
    table.add_column("Donor / description", style="cyan")
    table.add_column("Project")
    table.add_column("Mode")
    table.add_column("Amount", justify="right")
    for entry in entries[: args.limit]:
        if entry.kind == "debit":
            kind, amount = "[red]Debit[/red]", f"[red]-{_money(entry.amount)}[/red]"
        elif entry.is_refund:
            kind, amount = "[yellow]Refund[/yellow]", f"[yellow]{_money(entry.amount)}[/yellow]"
        else:
            kind, amount = "[green]Credit[/green]", f"[green]{_money(entry.amount)}[/green]"
        table.add_row(
            entry.date.isoformat(),
            kind,
            escape(entry.party),
            escape(entry.project_name),
            entry.mode or "-",
            amount,
        )
    console.print(table)
    if len(entries) > args.limit:
        console.print(f"[dim]{len(entries) - args.limit} more entries not shown (use --limit)[/dim]")


def cmd_receipt(args, ctx: Context) -> None:
    receipt = ctx.ledger_service.receipt(args.payment_id)

    header = Table.grid(expand=True)
    header.add_column()
    header.add_column(justify="right")
    header.add_row("[bold]Billed to[/bold]", "[bold]Date of issue[/bold]")
    header.add_row(escape(receipt.donor_name), receipt.issued_label)

    lines = Table(expand=True, show_edge=False)
    lines.add_column("Donation for")
    lines.add_column("Amount", justify="right")
    description = escape(receipt.project_name)
    if receipt.reason:
        description += f"\n[dim]{escape(receipt.reason)}[/dim]"
    lines.add_row(description, _money(receipt.amount))

    title = "REFUND RECEIPT" if receipt.is_refund else "RECEIPT"
    body = Group(
        header,
        "",
        lines,
        "",
        f"[bold]Total: {_money(receipt.amount)}[/bold]",
        "",
        "Thank you for your generous donation!",
        f"[dim]{ORGANIZATION_NAME} - {ORGANIZATION_ADDRESS}[/dim]",
    )
    console.print(
        Panel(body, title=f"{ORGANIZATION_NAME}  {title} #{escape(receipt.payment_id)}", border_style="green")
    )


def cmd_campaign(args, ctx: Context) -> None:
    content = ctx.content_service() if getattr(args, "broadcast", False) else None
    controller = CampaignController(ctx.ledger, content=content, ledger_service=ctx.ledger_service)

    if args.campaign_command == "launch":
        request = CampaignRequest(
            name=args.name,
            description=args.description,
            goal=args.goal,
            broadcast_message=args.message,
        )
        result = controller.launch(request)
        console.print(f"[green]Launched[/green] {escape(result.campaign.name)} ({result.campaign.id})")
        console.print(f"Donations go to project {result.project.id}")
        if result.broadcast:
            b = result.broadcast
            console.print(
                Panel(
                    f"[bold]Push:[/bold] {escape(b.push_notification)}\n\n"
                    f"[bold]SMS:[/bold] {escape(b.sms_message)}\n\n"
                    f"[bold]Email subject:[/bold] {escape(b.email_subject)}\n\n{escape(b.email_body)}",
                    title="Emergency broadcast",
                    border_style="red",
                )
            )
        return

    if args.campaign_command == "end":
        campaign = controller.end(args.campaign_id)
        console.print(f"Ended {escape(campaign.name)} ({campaign.id})")
        return

    active = controller.active_campaign()
    if active is None:
        console.print("[dim]No active emergency campaign[/dim]")
        return
    summary = (
        f"{escape(active.description)}\n\n"
        f"Raised: {_money(controller.raised(active))} of {_money(active.goal)} "
        f"({controller.progress(active):.0f}%)"
    )
    console.print(Panel(summary, title=f"ACTIVE: {escape(active.name)}", border_style="red"))


def cmd_thank_you(args, ctx: Context) -> None:
    rollups = compute_donor_rollups(ctx.ledger.payments.get_all(), ctx.today)
    rollup = next((r for r in rollups if r.name == args.donor), None)
    if rollup is None:
        raise KeyError(f"No donations recorded for {args.donor!r}")
    email = ctx.content_service().thank_donor(rollup)
    console.print(Panel(escape(email.email_body), title=escape(email.email_subject), border_style="green"))


def cmd_chat(args, ctx: Context) -> None:
    reply = ctx.content_service().chat([], args.message)
    console.print(escape(reply.response))


COMMANDS = {
    "donors": cmd_donors,
    "trend": cmd_trend,
    "top-donors": cmd_top_donors,
    "feed": cmd_feed,
    "totals": cmd_totals,
    "history": cmd_history,
    "receipt": cmd_receipt,
    "campaign": cmd_campaign,
    "thank-you": cmd_thank_you,
    "chat": cmd_chat,
}


# =============================================================================
# Entry point
# =============================================================================


def _parse_date(value: str) -> dt.date:
    try:
        return dt.date.fromisoformat(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"expected YYYY-MM-DD, got {value!r}") from e


def _non_negative_int(value: str) -> int:
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"must be >= 0, got {number}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="donor-ledger", description="Charity donation ledger reports")
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=None,
        help="Directory holding the ledger JSON files (default: $DONOR_LEDGER_DATA_DIR or ~/.donor-ledger)",
    )
    parser.add_argument(
        "--today",
        type=_parse_date,
        default=None,
        help="Treat this date as today (YYYY-MM-DD)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Log level (default from config/dashboard.yaml)",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    donors = sub.add_parser("donors", help="Donors ranked by engagement score")
    donors.add_argument("--assess-fraud", action="store_true", help="Run the fraud heuristic for every donor")

    trend = sub.add_parser("trend", help="Donation totals over time")
    trend.add_argument(
        "--granularity",
        choices=[g.value for g in Granularity],
        default=Granularity.DAILY.value,
    )

    sub.add_parser("top-donors", help="Top donors for today or the latest day with donations")

    feed = sub.add_parser("feed", help="Live donation feed")
    feed.add_argument("--ticks", type=_non_negative_int, default=0, help="Rotations to apply")

    sub.add_parser("totals", help="Credit, debit and balance")

    history = sub.add_parser("history", help="Merged credits and debits, newest first")
    history.add_argument("--search", default=None, help="Filter by donor, project, mode or description")
    history.add_argument("--limit", type=_non_negative_int, default=50)

    receipt = sub.add_parser("receipt", help="Printable receipt for one payment")
    receipt.add_argument("payment_id")

    campaign = sub.add_parser("campaign", help="Emergency campaigns")
    campaign_sub = campaign.add_subparsers(dest="campaign_command", required=True)
    launch = campaign_sub.add_parser("launch", help="Launch a new emergency campaign")
    launch.add_argument("--name", required=True)
    launch.add_argument("--description", required=True)
    launch.add_argument("--goal", type=float, required=True)
    launch.add_argument("--message", default="", help="Custom message for the broadcast")
    launch.add_argument("--broadcast", action="store_true", help="Generate alert copy before launching")
    end = campaign_sub.add_parser("end", help="End an active campaign")
    end.add_argument("campaign_id")
    campaign_sub.add_parser("status", help="Show the active campaign")

    thank_you = sub.add_parser("thank-you", help="Draft a thank-you email for a donor")
    thank_you.add_argument("donor")

    chat = sub.add_parser("chat", help="Ask the admin assistant")
    chat.add_argument("message")

    return parser


def main(argv: Optional[list[str]] = None) -> None:
    load_dotenv()
    args = build_parser().parse_args(argv)

    try:
        config = load_config()
        configure_global_logging(args.log_level or config.log_level)
        ctx = Context(
            data_dir=args.data_dir or get_data_dir(),
            today=args.today or dt.date.today(),
            config=config,
        )
        COMMANDS[args.command](args, ctx)
    except KeyError as e:
        console.print(f"[red]Error:[/red] {escape(str(e.args[0] if e.args else e))}")
        sys.exit(1)
    except (CampaignError, GenerationError, ValueError) as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        sys.exit(1)


if __name__ == "__main__":
    main()
