"""CLI entry point for ProseGate."""

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Literal

import click

from prosegate.api.gate import ProseGate
from prosegate.audit.storage import AuditStorage
from prosegate.cli.progress import ProgressTracker
from prosegate.contracts.checklist import CHECKLIST_CATEGORIES
from prosegate.contracts.deal import BioProgram, DealState, LoanDeal
from prosegate.contracts.pipeline import PackageResult, PipelineResult
from prosegate.contracts.prose import ProseBundle
from prosegate.contracts.verification import VerificationResult
from prosegate.settings import get_settings

DomainChoice = Literal["loan", "bio"]

CATEGORY_TITLES = {
    "required": "Required provisions",
    "standard": "Standard provisions",
    "regulatory": "Regulatory references",
    "cross_document": "Cross-document rules",
}


def load_deal(deal_path: Path, domain: DomainChoice) -> DealState:
    """Load deal state from a JSON file."""
    content = deal_path.read_text(encoding="utf-8")
    if domain == "bio":
        return BioProgram.model_validate_json(content)
    return LoanDeal.model_validate_json(content)


def load_bundle(bundle_path: Path, doc_type: str) -> ProseBundle:
    """Load a bundle file: either a saved ProseBundle or a plain field mapping."""
    data = json.loads(bundle_path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"{bundle_path.name} must hold a JSON object of prose fields")
    if isinstance(data.get("fields"), dict):
        return ProseBundle.model_validate({"doc_type": doc_type, **data})
    return ProseBundle(doc_type=doc_type, fields=data)


def make_gate(ctx: click.Context) -> ProseGate:
    return ProseGate(
        provider=ctx.obj["provider_type"],
        model=ctx.obj["model"],
        audit_path=ctx.obj["audit_path"],
    )


def print_verification(verification: VerificationResult) -> None:
    click.echo(
        f"Checks: {verification.checks_passed}/{verification.checks_run} passed"
        f" (references {verification.references_found}/{verification.references_checked})"
    )
    for issue in verification.issues:
        click.echo(f"  [{issue.severity}] {issue.field}: {issue.message}")


def print_result(result: PipelineResult) -> None:
    click.echo(f"\n=== {result.doc_type} ===")
    click.echo(f"State: {result.state.value.upper()}")
    click.echo(f"Attempts: {result.attempts}")
    click.echo(f"Trace: {' -> '.join(s.value for s in result.trace)}")
    click.echo(f"Review: {result.review_status}")
    if result.used_fallback:
        click.echo("Prose: generic fallback")

    if result.verdicts:
        passed = sum(1 for v in result.verdicts if v.passed)
        click.echo(f"Checklist: {passed}/{len(result.verdicts)} passed")
        for verdict in result.verdicts:
            if not verdict.passed:
                click.echo(f"  [FAIL] {verdict.provision}: {verdict.note}")

    if result.issues:
        click.echo("\nIssues:")
        for issue in result.issues:
            status = " (resolved)" if issue.resolved else ""
            click.echo(
                f"  #{issue.attempt} [{issue.severity}] {issue.source}/{issue.field}"
                f"{status}: {issue.message}"
            )


def print_package(package: PackageResult) -> None:
    for result in package.documents.values():
        print_result(result)

    click.echo("\n=== Package ===")
    click.echo(f"Accepted: {'Yes' if package.accepted else 'No'}")
    for issue in package.cross_document_issues:
        click.echo(f"  [critical] {issue.message}")
    for doc_type, rules in package.cross_document_rules.items():
        click.echo(f"\n{doc_type} cross-document rules:")
        for rule in rules:
            click.echo(f"  - {rule}")


@click.group()
@click.option(
    "--provider",
    "-p",
    type=click.Choice(["openai", "anthropic", "openrouter", "lmstudio"]),
    default=None,
    help="LLM provider to use (default: PROSEGATE_PROVIDER)",
)
@click.option(
    "--model",
    "-m",
    type=str,
    default=None,
    help="Drafting model (default: provider default)",
)
@click.option(
    "--audit-path",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Path for audit packages",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Logging level (default: LOG_LEVEL)",
)
@click.pass_context
def app(
    ctx: click.Context,
    provider: Literal["openai", "anthropic", "openrouter", "lmstudio"] | None,
    model: str | None,
    audit_path: Path | None,
    log_level: str | None,
):
    """ProseGate - generate, verify and repair compliance document prose."""
    ctx.ensure_object(dict)

    settings = get_settings()
    logging.basicConfig(
        level=(log_level or settings.log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    ctx.obj["provider_type"] = provider or settings.provider
    ctx.obj["model"] = model
    ctx.obj["audit_path"] = audit_path or settings.audit_path


@app.command()
@click.argument("deal_file", type=click.Path(exists=True, path_type=Path))
@click.option("--domain", type=click.Choice(["loan", "bio"]), default="loan")
@click.option("--doc-type", "-t", required=True, help="Document type to generate")
@click.option(
    "--output", "-o", type=click.Path(path_type=Path), help="Save the result to file"
)
@click.option("--save-audit/--no-audit", default=True, help="Save audit package")
@click.pass_context
def generate(
    ctx: click.Context,
    deal_file: Path,
    domain: DomainChoice,
    doc_type: str,
    output: Path | None,
    save_audit: bool,
):
    """Generate prose for one document and gate it."""

    async def run():
        tracker = ProgressTracker()
        tracker.add_step("deal", "Loading deal")
        tracker.add_step("pipeline", f"Generating {doc_type}")
        tracker.add_step("audit", "Saving audit package")

        click.echo()
        tracker.start_step("deal")
        try:
            deal = load_deal(deal_file, domain)
        except ValueError as e:
            tracker.complete_step("deal", success=False)
            click.echo(f"\n❌ Failed to load deal: {e}", err=True)
            sys.exit(1)
        tracker.complete_step("deal")

        gate = make_gate(ctx)
        tracker.start_step("pipeline")
        tracker.add_detail(f"Provider: {gate.provider_type}")
        tracker.add_detail(f"Model: {gate.model}")
        try:
            result, _ = await gate.generate(deal, doc_type, save_audit=False)
        except ValueError as e:
            tracker.complete_step("pipeline", success=False)
            tracker.print_summary()
            click.echo(f"\n❌ Generation failed: {e}", err=True)
            sys.exit(1)
        tracker.add_detail(f"State: {result.state.value}")
        tracker.complete_step("pipeline", success=result.accepted)

        if save_audit:
            tracker.start_step("audit")
            package = gate.build_audit_package(deal, result)
            gate.storage.save(package)
            tracker.add_detail(f"Package ID: {package.package_id}")
            tracker.complete_step("audit")
        else:
            tracker.skip_step("audit", "disabled with --no-audit")

        tracker.print_summary()
        print_result(result)

        if output:
            output.write_text(result.model_dump_json(indent=2), encoding="utf-8")
            click.echo(f"\nResult saved to: {output}")

        if not result.accepted:
            sys.exit(1)

    asyncio.run(run())


@app.command()
@click.argument("deal_file", type=click.Path(exists=True, path_type=Path))
@click.option("--domain", type=click.Choice(["loan", "bio"]), default="loan")
@click.option(
    "--doc-type", "-t", "doc_types", multiple=True, required=True,
    help="Document type (repeat for each sibling document)",
)
@click.option(
    "--output", "-o", type=click.Path(path_type=Path), help="Save the result to file"
)
@click.option("--save-audit/--no-audit", default=True, help="Save audit package")
@click.pass_context
def package(
    ctx: click.Context,
    deal_file: Path,
    domain: DomainChoice,
    doc_types: tuple[str, ...],
    output: Path | None,
    save_audit: bool,
):
    """Generate sibling documents concurrently and check them against each other."""

    async def run():
        tracker = ProgressTracker()
        tracker.add_step("deal", "Loading deal")
        tracker.add_step("pipeline", f"Generating {len(doc_types)} documents")
        tracker.add_step("cross", "Checking cross-document consistency")
        tracker.add_step("audit", "Saving audit package")

        click.echo()
        tracker.start_step("deal")
        try:
            deal = load_deal(deal_file, domain)
        except ValueError as e:
            tracker.complete_step("deal", success=False)
            click.echo(f"\n❌ Failed to load deal: {e}", err=True)
            sys.exit(1)
        tracker.complete_step("deal")

        gate = make_gate(ctx)
        tracker.start_step("pipeline")
        try:
            result, _ = await gate.generate_package(deal, doc_types, save_audit=False)
        except ValueError as e:
            tracker.complete_step("pipeline", success=False)
            tracker.print_summary()
            click.echo(f"\n❌ Package generation failed: {e}", err=True)
            sys.exit(1)
        for doc_type, doc in result.documents.items():
            tracker.add_detail(f"{doc_type}: {doc.state.value}")
        tracker.complete_step("pipeline")

        tracker.start_step("cross")
        tracker.add_detail(f"Issues: {len(result.cross_document_issues)}")
        tracker.complete_step("cross", success=not result.cross_document_issues)

        if save_audit:
            tracker.start_step("audit")
            audit = gate.build_audit_package(deal, result)
            gate.storage.save(audit)
            tracker.add_detail(f"Package ID: {audit.package_id}")
            tracker.complete_step("audit")
        else:
            tracker.skip_step("audit", "disabled with --no-audit")

        tracker.print_summary()
        print_package(result)

        if output:
            output.write_text(result.model_dump_json(indent=2), encoding="utf-8")
            click.echo(f"\nResult saved to: {output}")

        if not result.accepted:
            sys.exit(1)

    asyncio.run(run())


@app.command()
@click.argument("doc_type")
@click.option("--program", default=None, help="Loan program id or drug class")
@click.pass_context
def checklist(ctx: click.Context, doc_type: str, program: str | None):
    """Show the merged compliance checklist for a document type."""
    gate = make_gate(ctx)
    if not gate.checklists.is_known(doc_type):
        click.echo(f"No checklist for document type: {doc_type}", err=True)
        sys.exit(1)

    entry = gate.checklist(doc_type, program)
    click.echo(f"=== {doc_type} ({len(entry)} items) ===")
    for category in CHECKLIST_CATEGORIES:
        items = getattr(entry, category)
        if not items:
            continue
        click.echo(f"\n{CATEGORY_TITLES[category]}:")
        for item in items:
            marker = " [template]" if item in entry.template_guaranteed else ""
            click.echo(f"  - {item}{marker}")


@app.command()
@click.argument("deal_file", type=click.Path(exists=True, path_type=Path))
@click.argument("bundle_file", type=click.Path(exists=True, path_type=Path))
@click.option("--domain", type=click.Choice(["loan", "bio"]), default="loan")
@click.option("--doc-type", "-t", required=True, help="Document type of the bundle")
@click.pass_context
def verify(
    ctx: click.Context,
    deal_file: Path,
    bundle_file: Path,
    domain: DomainChoice,
    doc_type: str,
):
    """Run the deterministic verifier over a saved prose bundle."""
    try:
        deal = load_deal(deal_file, domain)
        bundle = load_bundle(bundle_file, doc_type)
        result = make_gate(ctx).verify(bundle, deal, doc_type)
    except ValueError as e:
        click.echo(f"❌ Verification failed: {e}", err=True)
        sys.exit(1)

    click.echo(f"=== {doc_type} ===")
    click.echo(f"Passed: {'Yes' if result.passed else 'No'}")
    print_verification(result)

    if not result.passed:
        sys.exit(1)


@app.command("audit-verify")
@click.argument("package_id")
@click.pass_context
def audit_verify(ctx: click.Context, package_id: str):
    """Verify integrity of an audit package."""
    storage = AuditStorage(ctx.obj["audit_path"])
    is_valid, message = storage.verify(package_id)

    if is_valid:
        click.echo(f"[OK] {message}")
    else:
        click.echo(f"[FAIL] {message}")
        sys.exit(1)


if __name__ == "__main__":
    app()
