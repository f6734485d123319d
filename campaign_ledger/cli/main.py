from __future__ import annotations

"""
campaign-ledger — local command-line driver for the reward-campaign ledger.

Runs the ledger against a simulated host (memory store, token ledger,
manual clock) persisted to a JSON state file between invocations.

Global options:
  --state PATH    State file (default ./campaign_ledger_state.json,
                  env CAMPAIGN_LEDGER_STATE_FILE)
  --json          Output JSON instead of human-readable text

Every mutating command accepts `--as PRINCIPAL` (repeatable) to name the
signers of the transaction. Without it, the command signs as the principal
the operation naturally requires (the admin, the creator, the user).

Examples:
  campaign-ledger init GADMIN
  campaign-ledger mint XLM GCREATOR 100000
  campaign-ledger create --pool POOL --asset USDC --token XLM --daily 1000 --days 7 --creator GCREATOR
  campaign-ledger distribute 1 snapshot.json
  campaign-ledger claim GUSER 1
  campaign-ledger advance --days 8
  campaign-ledger shutdown 1
"""

import json
import logging
from pathlib import Path
from typing import Any, Callable, List, NoReturn, Optional, TypeVar

import typer

from campaign_ledger import config as config_mod
from campaign_ledger.errors import LedgerError, error_to_receipt_fields
from campaign_ledger.host.context import ContextError
from campaign_ledger.host.payments import PaymentError
from campaign_ledger.oracle import DistributionOracle, SnapshotError, load_snapshot
from campaign_ledger.version import __version__

from .state import DEFAULT_STATE_PATH, STATE_FILE_ENV, Session, StateFileError, open_session

T = TypeVar("T")

app = typer.Typer(
    name="campaign-ledger",
    add_completion=False,
    no_args_is_help=True,
    help="Drive a local reward-campaign ledger backed by a JSON state file.",
)

_AS_HELP = "Principal signing the transaction (repeatable)."


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _opts(ctx: typer.Context) -> dict:
    obj = ctx.find_root().obj
    return obj if isinstance(obj, dict) else {}


def _json_mode(ctx: typer.Context) -> bool:
    return bool(_opts(ctx).get("json"))


def _emit(ctx: typer.Context, obj: Any, human: Callable[[], None]) -> None:
    if _json_mode(ctx):
        typer.echo(json.dumps(obj, indent=2, sort_keys=True))
    else:
        human()


def _fail(code: str, message: str) -> NoReturn:
    typer.echo(f"{code}: {message}", err=True)
    raise typer.Exit(code=1)


def _fail_op(ctx: typer.Context, err: Exception, code: str, message: str) -> NoReturn:
    if _json_mode(ctx):
        typer.echo(json.dumps(error_to_receipt_fields(err), sort_keys=True), err=True)
        raise typer.Exit(code=1)
    _fail(code, message)


def _session(ctx: typer.Context) -> Session:
    opts = _opts(ctx)
    try:
        return open_session(opts.get("state") or DEFAULT_STATE_PATH, opts.get("config"))
    except StateFileError as e:
        _fail("STATE_FILE", str(e))


def _run(ctx: typer.Context, session: Session, signers: List[str], fn: Callable[[], T]) -> T:
    """Run one ledger call under `signers`; persist on success, exit 1 on failure."""
    try:
        with session.host.signed_by(*signers):
            result = fn()
    except LedgerError as e:
        _fail_op(ctx, e, e.code, e.message)
    except PaymentError as e:
        _fail_op(ctx, e, "PAYMENT_FAILED", str(e))
    except ContextError as e:
        _fail_op(ctx, e, "CONTEXT", str(e))
    session.save()
    return result


def _campaign_row(c: Any) -> str:
    state = "active" if c.is_active else "paused"
    return (
        f"#{c.campaign_id:<4} {state:<7} pool={c.pool_address} asset={c.asset} "
        f"token={c.reward_token} daily={c.daily_reward_amount} "
        f"remaining={c.remaining_funds}/{c.total_funded_amount} ends={c.end_time}"
    )


# ---------------------------------------------------------------------------
# Typer wiring
# ---------------------------------------------------------------------------


@app.callback()
def _configure(
    ctx: typer.Context,
    state: Optional[Path] = typer.Option(
        None,
        "--state",
        help="Ledger state file (default: ./campaign_ledger_state.json)",
        envvar=STATE_FILE_ENV,
    ),
    json_output: bool = typer.Option(False, "--json", help="Output JSON instead of human-readable text"),
) -> None:
    try:
        cfg = config_mod.load()
    except (ValueError, FileNotFoundError) as e:
        _fail("CONFIG", str(e))
    logging.basicConfig(level=cfg.log_level, format="%(levelname)s %(name)s: %(message)s")
    ctx.obj = {"state": state, "json": json_output, "config": cfg}


@app.command("init")
def init(
    ctx: typer.Context,
    admin: str = typer.Argument(..., help="Admin principal"),
    signer: List[str] = typer.Option([], "--as", help=_AS_HELP),
) -> None:
    """Initialize the ledger with its admin."""
    s = _session(ctx)
    _run(ctx, s, signer or [admin], lambda: s.contract.initialize(admin))
    _emit(ctx, {"admin": admin}, lambda: typer.echo(f"Initialized with admin {admin}"))


@app.command("mint")
def mint(
    ctx: typer.Context,
    token: str = typer.Argument(..., help="Token identifier"),
    account: str = typer.Argument(..., help="Account to credit"),
    amount: int = typer.Argument(..., min=1, help="Amount in smallest units"),
) -> None:
    """Credit an account with simulated tokens."""
    s = _session(ctx)
    try:
        s.tokens.mint(token, account, amount)
    except PaymentError as e:
        _fail("PAYMENT_FAILED", str(e))
    s.save()
    bal = s.tokens.balance(token, account)
    _emit(
        ctx,
        {"token": token, "account": account, "balance": bal},
        lambda: typer.echo(f"{account}: {bal} {token}"),
    )


@app.command("balance")
def balance(
    ctx: typer.Context,
    token: str = typer.Argument(..., help="Token identifier"),
    account: str = typer.Argument(..., help="Account"),
) -> None:
    """Show a simulated token balance."""
    s = _session(ctx)
    bal = s.tokens.balance(token, account)
    _emit(ctx, {"token": token, "account": account, "balance": bal}, lambda: typer.echo(f"{bal}"))


@app.command("create")
def create(
    ctx: typer.Context,
    pool: str = typer.Option(..., "--pool", help="Pool address"),
    asset: str = typer.Option(..., "--asset", help="Pool asset"),
    token: str = typer.Option(..., "--token", help="Reward token"),
    daily: int = typer.Option(..., "--daily", help="Daily reward amount"),
    days: int = typer.Option(..., "--days", help="Duration in days"),
    creator: str = typer.Option(..., "--creator", help="Funding creator"),
    signer: List[str] = typer.Option([], "--as", help=_AS_HELP),
) -> None:
    """Create and fund a campaign for a pool/asset pair."""
    s = _session(ctx)
    cid = _run(
        ctx, s, signer or [creator], lambda: s.contract.create_campaign(pool, asset, token, daily, days, creator)
    )
    c = s.contract.get_campaign(cid)
    _emit(ctx, c.to_dict(), lambda: typer.echo(f"Created campaign {cid} (funded {c.total_funded_amount} {token})"))


@app.command("distribute")
def distribute(
    ctx: typer.Context,
    campaign_id: int = typer.Argument(..., help="Campaign id"),
    participants: Path = typer.Argument(..., exists=True, dir_okay=False, help="Snapshot (.json or .csv)"),
    total: Optional[int] = typer.Option(None, "--total", help="Total pool deposits (default: sum of balances)"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Preview allocations without submitting"),
    signer: List[str] = typer.Option([], "--as", help=_AS_HELP),
) -> None:
    """Run one distribution round from a participant snapshot."""
    s = _session(ctx)
    try:
        people, file_total = load_snapshot(participants)
    except SnapshotError as e:
        _fail("BAD_SNAPSHOT", str(e))
    if total is None:
        total = file_total

    admin = s.contract.get_admin()
    oracle = DistributionOracle(s.contract, admin or "")
    if dry_run:
        rewards = oracle.preview(campaign_id, people, total)
        rows = [{"address": p.address, "balance": p.balance, "reward": r} for p, r in zip(people, rewards)]

        def human() -> None:
            for r in rows:
                typer.echo(f"{r['address']}: {r['reward']}")

        _emit(ctx, rows, human)
        return

    signers = signer or ([admin] if admin else [])
    report = _run(ctx, s, signers, lambda: oracle.submit(campaign_id, people, total))
    _emit(
        ctx,
        report.to_dict(),
        lambda: typer.echo(
            f"Campaign {campaign_id}: allocated {report.allocated} to {report.accrued_users} user(s), dust {report.dust}"
            + (f" (no-op: {report.noop_reason})" if report.noop_reason else "")
        ),
    )


@app.command("claim")
def claim(
    ctx: typer.Context,
    user: str = typer.Argument(..., help="Claiming user"),
    campaign_id: int = typer.Argument(..., help="Campaign id"),
    signer: List[str] = typer.Option([], "--as", help=_AS_HELP),
) -> None:
    """Claim a user's unclaimed rewards from one campaign."""
    s = _session(ctx)
    amount = _run(ctx, s, signer or [user], lambda: s.contract.claim_rewards(user, campaign_id))
    _emit(
        ctx,
        {"user": user, "campaign_id": campaign_id, "amount": amount},
        lambda: typer.echo(f"Claimed {amount} from campaign {campaign_id}"),
    )


@app.command("claim-all")
def claim_all(
    ctx: typer.Context,
    user: str = typer.Argument(..., help="Claiming user"),
    signer: List[str] = typer.Option([], "--as", help=_AS_HELP),
) -> None:
    """Claim a user's rewards from every campaign."""
    s = _session(ctx)
    claimed = _run(ctx, s, signer or [user], lambda: s.contract.claim_all_rewards(user))
    rows = [{"campaign_id": cid, "amount": amt} for cid, amt in claimed]

    def human() -> None:
        if not rows:
            typer.echo("Nothing to claim")
        for r in rows:
            typer.echo(f"Claimed {r['amount']} from campaign {r['campaign_id']}")

    _emit(ctx, rows, human)


@app.command("rewards")
def rewards(
    ctx: typer.Context,
    user: str = typer.Argument(..., help="User"),
    campaign_id: Optional[int] = typer.Option(None, "--campaign", help="Only this campaign"),
) -> None:
    """Show a user's unclaimed rewards."""
    s = _session(ctx)
    if campaign_id is not None:
        amount = s.contract.get_user_rewards(user, campaign_id)
        _emit(ctx, {"campaign_id": campaign_id, "unclaimed": amount}, lambda: typer.echo(str(amount)))
        return
    rows = [{"campaign_id": cid, "unclaimed": amt} for cid, amt in s.contract.get_user_all_rewards(user)]

    def human() -> None:
        if not rows:
            typer.echo("No unclaimed rewards")
        for r in rows:
            typer.echo(f"campaign {r['campaign_id']}: {r['unclaimed']}")

    _emit(ctx, rows, human)


@app.command("campaigns")
def campaigns(
    ctx: typer.Context,
    active: bool = typer.Option(False, "--active", help="Only campaigns flagged active"),
) -> None:
    """List campaigns."""
    s = _session(ctx)
    items = s.contract.get_active_campaigns() if active else s.contract.registry.all_campaigns()

    def human() -> None:
        if not items:
            typer.echo("No campaigns")
        for c in items:
            typer.echo(_campaign_row(c))

    _emit(ctx, [c.to_dict() for c in items], human)


@app.command("show")
def show(ctx: typer.Context, campaign_id: int = typer.Argument(..., help="Campaign id")) -> None:
    """Show one campaign."""
    s = _session(ctx)
    c = s.contract.get_campaign(campaign_id)
    if c is None:
        _fail("CAMPAIGN_NOT_FOUND", f"campaign {campaign_id} not found")
    _emit(ctx, c.to_dict(), lambda: typer.echo(_campaign_row(c)))


@app.command("status")
def status(
    ctx: typer.Context,
    campaign_id: int = typer.Argument(..., help="Campaign id"),
    active: bool = typer.Option(..., "--active/--paused", help="New activation flag"),
    signer: List[str] = typer.Option([], "--as", help=_AS_HELP),
) -> None:
    """Activate or pause a campaign (admin or creator)."""
    s = _session(ctx)
    admin = s.contract.get_admin()
    signers = signer or ([admin] if admin else [])
    _run(ctx, s, signers, lambda: s.contract.update_campaign_status(campaign_id, active))
    state = "active" if active else "paused"
    _emit(ctx, {"campaign_id": campaign_id, "is_active": active}, lambda: typer.echo(f"Campaign {campaign_id} {state}"))


@app.command("shutdown")
def shutdown(
    ctx: typer.Context,
    campaign_id: int = typer.Argument(..., help="Campaign id"),
    signer: List[str] = typer.Option([], "--as", help=_AS_HELP),
) -> None:
    """Recover a campaign's remaining funds after it has ended (creator only)."""
    s = _session(ctx)
    c = s.contract.get_campaign(campaign_id)
    signers = signer or ([c.creator] if c is not None else [])
    amount = _run(ctx, s, signers, lambda: s.contract.shutdown_campaign(campaign_id))
    _emit(
        ctx,
        {"campaign_id": campaign_id, "amount": amount},
        lambda: typer.echo(f"Campaign {campaign_id} shut down; {amount} returned"),
    )


@app.command("advance")
def advance(
    ctx: typer.Context,
    days: int = typer.Option(0, "--days", min=0, help="Days to advance"),
    seconds: int = typer.Option(0, "--seconds", min=0, help="Seconds to advance"),
) -> None:
    """Move the simulated clock forward."""
    s = _session(ctx)
    try:
        now = s.clock.advance(days * s.host.config.seconds_per_day + seconds)
    except ContextError as e:
        _fail("CLOCK", str(e))
    s.save()
    _emit(ctx, {"now": now}, lambda: typer.echo(f"now={now}"))


@app.command("events")
def events(
    ctx: typer.Context,
    name: Optional[str] = typer.Option(None, "--name", help="Only events with this name"),
) -> None:
    """Print the event log."""
    s = _session(ctx)
    items = s.host.events.by_name(name) if name else s.host.events.all()

    def human() -> None:
        for e in items:
            args = " ".join(f"{k}={v}" for k, v in sorted(e.args.items()))
            typer.echo(f"{e.seq:>5} t={e.timestamp} {e.name} {args}")

    _emit(ctx, [e.to_dict() for e in items], human)


@app.command("config")
def show_config(ctx: typer.Context) -> None:
    """Print the effective configuration."""
    typer.echo(config_mod.pretty(_opts(ctx).get("config")))


@app.command("version")
def version() -> None:
    """Print the package version."""
    typer.echo(__version__)


def main() -> None:  # pragma: no cover
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
