from __future__ import annotations
from pathlib import Path
from typing import Optional
import json
import typer
from rich import print
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from agreementview.billing import aggregate
from agreementview.catalog import AgreementCatalog, build_catalog
from agreementview.config import get_settings
from agreementview.errors import AgreementNotFoundError, InvalidInputError, SchemaError
from agreementview.logging import configure_logging
from agreementview.presentation import (
    format_date,
    format_money,
    format_period,
    kind_label,
    render_value,
    status_style,
)
from agreementview.schemas import Agreement
from agreementview.tracing import configure_tracing, TracingConfig

app = typer.Typer(add_completion=False, help="Read-only agreement and billing viewer.")
console = Console()

SECTIONS = ("items", "billing", "parties", "terms", "attachments", "characteristics", "spec", "history")

@app.callback()
def main(ctx: typer.Context, data: Optional[Path] = typer.Option(None, "--data", help="Agreements JSON file (default: bundled sample)")):
    ctx.obj = {"data": data}

def build_cli_catalog(ctx: typer.Context) -> AgreementCatalog:
    s = get_settings()
    configure_logging()
    configure_tracing(TracingConfig(service_name=s.service_name, otlp_endpoint=s.otlp_endpoint))
    data = (ctx.obj or {}).get("data")
    if data is not None:
        s = s.model_copy(update={"data_path": data})
    try:
        return build_catalog(s)
    except SchemaError as e:
        print(f"[red]Invalid agreement data[/red] at {escape(e.field)}: {escape(e.reason)}")
        raise typer.Exit(code=1)

def _get(catalog: AgreementCatalog, agreement_id: str) -> Agreement:
    try:
        return catalog.get(agreement_id)
    except AgreementNotFoundError as e:
        print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(code=1)

def _table(title: str, *columns: str) -> Table:
    t = Table(title=title, title_justify="left", show_lines=False)
    for c in columns:
        t.add_column(c, justify="right" if c in ("Quantity", "Unit price", "Amount", "Amount due") else "left")
    return t

def _status(a: Agreement) -> str:
    return f"[{status_style(a.status)}]{escape(a.status.value)}[/]"

@app.command("list")
def list_agreements(
    ctx: typer.Context,
    query: str = typer.Option("", "--query", "-q", help="Match against id or name"),
    status: str = typer.Option("all", "--status", "-s"),
    as_json: bool = typer.Option(False, "--json"),
):
    catalog = build_cli_catalog(ctx)
    found = catalog.search(query, status)
    if as_json:
        rows = [
            {"id": a.id, "name": a.name, "status": a.status.value, "net": str(catalog.totals(a).net), "currency": a.billing.currency}
            for a in found
        ]
        typer.echo(json.dumps(rows, indent=2, ensure_ascii=False))
        return

    t = _table(f"Agreements ({len(found)} of {len(catalog)})", "Agreement", "Status", "Effective", "Products", "Net / month")
    for a in found:
        t.add_row(
            f"{escape(a.name)}\n[dim]{escape(a.id)}[/dim]",
            _status(a),
            format_period(a.effective_period),
            escape(" • ".join(it.name for it in a.items)),
            format_money(catalog.totals(a).net, a.billing.currency),
        )
    console.print(t)

@app.command()
def totals(ctx: typer.Context, agreement_id: str, as_json: bool = typer.Option(False, "--json")):
    catalog = build_cli_catalog(ctx)
    a = _get(catalog, agreement_id)
    res = catalog.totals(a)
    cur = a.billing.currency
    if as_json:
        out = {"agreement_id": a.id, "currency": cur, **{k: str(v) for k, v in res.as_dict().items()}}
        typer.echo(json.dumps(out, indent=2))
        return
    print(f"Net:   {format_money(res.net, cur)}")
    print(f"Tax ({a.billing.tax_percent}%): {format_money(res.tax, cur)}")
    print(f"[bold]Gross: {format_money(res.gross, cur)}[/bold]")

@app.command("aggregate")
def aggregate_file(path: Path, tax_percent: float = typer.Option(..., "--tax-percent", "-t")):
    """Totals for a JSON list of charge records."""
    try:
        charges = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        print(f"[red]Invalid charges file:[/red] {escape(str(e))}")
        raise typer.Exit(code=1)
    try:
        res = aggregate(charges, tax_percent)
    except InvalidInputError as e:
        print(f"[red]Cannot aggregate:[/red] {escape(e.reason)}")
        raise typer.Exit(code=1)
    typer.echo(json.dumps({k: str(v) for k, v in res.as_dict().items()}, indent=2))

@app.command()
def show(ctx: typer.Context, agreement_id: str, section: str = typer.Option("all", "--section")):
    if section != "all" and section not in SECTIONS:
        raise typer.BadParameter(f"Unknown section: {section} (choose from all, {', '.join(SECTIONS)})")
    catalog = build_cli_catalog(ctx)
    a = _get(catalog, agreement_id)

    console.print(f"[bold]{escape(a.name)}[/bold]  {escape(a.id)}  {_status(a)}")
    console.print(f"Effective: {format_period(a.effective_period)}")
    if a.customer:
        console.print(f"Customer: {escape(a.customer.name or '')}  {escape(a.customer.phone or '')}  {escape(a.customer.address or '')}")
    if a.provider:
        console.print(f"Provider: {escape(a.provider)}")

    for name in SECTIONS if section == "all" else (section,):
        _RENDERERS[name](catalog, a)

def _render_items(catalog: AgreementCatalog, a: Agreement) -> None:
    t = _table("Items", "Item", "Name", "Description", "Offering", "Specification", "Characteristics")
    for it in a.items:
        p = it.product
        chars = ", ".join(f"{c.name}: {render_value(c.value)}" for c in p.characteristics) if p else ""
        t.add_row(
            escape(it.id),
            escape(it.name),
            escape(it.description or ""),
            escape(p.product_offering.name or p.product_offering.id) if p and p.product_offering else "",
            escape(p.product_specification.name or p.product_specification.id) if p and p.product_specification else "",
            escape(chars),
        )
    console.print(t)

def _render_billing(catalog: AgreementCatalog, a: Agreement) -> None:
    st = catalog.statement(a)
    cur = st.currency
    console.print(f"Billing period: {format_period(st.period)}")
    t = _table("Charges", "Charge", "Kind", "Reference", "Quantity", "Unit", "Unit price", "Amount")
    for line in st.lines:
        c = line.charge
        t.add_row(
            escape(c.name), kind_label(c.kind), escape(c.reference or ""), str(c.quantity),
            escape(c.unit or ""), format_money(c.unit_price, cur), format_money(line.amount, cur),
        )
    t.add_section()
    t.add_row("Subtotal (net)", "", "", "", "", "", format_money(st.totals.net, cur))
    t.add_row(f"Tax ({st.tax_percent}%)", "", "", "", "", "", format_money(st.totals.tax, cur))
    t.add_row("[bold]Total (gross)[/bold]", "", "", "", "", "", f"[bold]{format_money(st.totals.gross, cur)}[/bold]")
    console.print(t)

    bills = _table("Bills", "Bill no.", "Date", "State", "Period", "Amount due", "Due", "Paid")
    for b in st.bills:
        paid = sum((p.amount for p in a.billing.payments_for(b)), start=0)
        bills.add_row(
            escape(b.bill_no), format_date(b.bill_date), escape(b.state.value), format_period(b.billing_period),
            format_money(b.amount_due, b.currency), format_date(b.payment_due_date), format_money(paid, b.currency),
        )
    console.print(bills)

    pays = _table("Payments", "Payment", "Date", "Amount", "Method", "Bill")
    for p in st.payments:
        pays.add_row(escape(p.id), format_date(p.date), format_money(p.amount, p.currency), escape(p.method or ""), escape(p.bill_ref or ""))
    console.print(pays)

def _render_parties(catalog: AgreementCatalog, a: Agreement) -> None:
    t = _table("Parties", "Type", "Id", "Role", "Name")
    for p in a.engaged_parties:
        t.add_row("engaged", escape(p.id), escape(p.role), escape(p.name or ""))
    for p in a.related_parties:
        t.add_row("related", escape(p.id), escape(p.role), escape(p.name or ""))
    console.print(t)

def _render_terms(catalog: AgreementCatalog, a: Agreement) -> None:
    t = _table("Terms", "Term", "Name", "Description", "Valid", "Characteristics")
    for term in a.terms:
        chars = ", ".join(f"{c.name}: {render_value(c.value)}" for c in term.characteristics)
        t.add_row(escape(term.id), escape(term.name), escape(term.description or ""), format_period(term.valid_for), escape(chars))
    console.print(t)

def _render_attachments(catalog: AgreementCatalog, a: Agreement) -> None:
    t = _table("Attachments", "Attachment", "Name", "Type", "Modified", "Link")
    for att in a.attachments:
        t.add_row(escape(att.id), escape(att.name), escape(att.mime_type or ""), format_date(att.last_modified), escape(att.url or ""))
    console.print(t)

def _render_characteristics(catalog: AgreementCatalog, a: Agreement) -> None:
    t = _table("Characteristics", "Name", "Value")
    for c in a.characteristics:
        t.add_row(escape(c.name), escape(render_value(c.value)))
    console.print(t)

def _render_spec(catalog: AgreementCatalog, a: Agreement) -> None:
    spec = a.specification
    if spec is None:
        console.print("[dim]No agreement specification[/dim]")
        return
    t = _table("Specification", "Spec id", "Name", "Version", "Valid")
    t.add_row(escape(spec.id), escape(spec.name or ""), escape(spec.version or ""), format_period(spec.valid_for))
    console.print(t)

def _render_history(catalog: AgreementCatalog, a: Agreement) -> None:
    t = _table("History", "Timestamp", "Action", "User/System")
    for h in a.history:
        t.add_row(h.timestamp.strftime("%Y-%m-%d %H:%M"), escape(h.action), escape(h.actor or ""))
    console.print(t)

_RENDERERS = {
    "items": _render_items,
    "billing": _render_billing,
    "parties": _render_parties,
    "terms": _render_terms,
    "attachments": _render_attachments,
    "characteristics": _render_characteristics,
    "spec": _render_spec,
    "history": _render_history,
}

if __name__ == "__main__":
    app()
