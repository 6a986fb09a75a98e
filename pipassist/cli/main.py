"""
Main CLI entry point for PIP Assist.
Handles command-line interface and routing to appropriate modules.
"""

import sys
from typing import Any, Dict, Optional, Tuple

import click

from pipassist import __version__, __description__
from pipassist.ai import BedrockClient, FormChecker, FORM_TYPES, GuidanceScheduler, GuidanceService, export_improvements
from pipassist.ai.form_checker import FORM_CHECKER_MODULE
from pipassist.config import ConfigurationManager
from pipassist.exceptions import (
    AIServiceError,
    ConfigurationError,
    ContentError,
    FormCheckError,
    ModuleLockedError,
    PaymentError,
    PipAssistError,
)
from pipassist.models import SUPPORTED_LANGUAGES, localized
from pipassist.payment import StripeCheckout, price_for
from pipassist.questionnaire import MODULE_NAMES, QuestionBank, QuestionnaireEngine, QuestionnaireRunner
from pipassist.storage import UnlockRegistry, YamlFileStore
from pipassist.utils.logging_utils import setup_logging, get_logger

LANG_OPTION = click.Choice(SUPPORTED_LANGUAGES)


@click.group()
@click.option("--config", "-c", help="Configuration file path")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option(
    "--debug", is_flag=True, help="Enable debug mode with detailed error traces"
)
@click.pass_context
def cli(ctx: click.Context, config: Optional[str], verbose: bool, debug: bool):
    """PIP Assist - guided help with UK benefit and government forms.

    Answers are saved as you go, and AI guidance is generated for each
    question in Farsi, English or Ukrainian.

    Quick Start:
      pipassist modules            # List available forms
      pipassist unlock pip         # Buy access to a form
      pipassist fill pip           # Fill in a form step by step
      pipassist check form.pdf     # Score a completed form
    """

    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug
    ctx.obj["verbose"] = verbose

    # Skip config loading for the version command
    if ctx.invoked_subcommand == "version":
        ctx.obj["config"] = {}
        ctx.obj["config_manager"] = None
        return

    try:
        config_manager = ConfigurationManager(config)
        ctx.obj["config"] = config_manager.load_config()
        ctx.obj["config_manager"] = config_manager
    except ConfigurationError as e:
        click.echo(f"❌ Error loading configuration: {e}", err=True)
        if debug:
            import traceback

            click.echo(f"Debug trace:\n{traceback.format_exc()}", err=True)
        click.echo(
            "💡 Try running 'pipassist config --init' to create default configuration",
            err=True,
        )
        sys.exit(1)

    log_level = (
        "DEBUG"
        if (verbose or debug)
        else ctx.obj["config"].get("logging", {}).get("level", "INFO")
    )
    log_file = ctx.obj["config"].get("logging", {}).get("file")

    try:
        setup_logging(level=log_level, log_file=log_file)
        logger = get_logger("cli.main")
        logger.debug(f"PIP Assist CLI started with log level: {log_level}")
    except OSError as e:
        click.echo(f"⚠️  Warning: Could not setup logging: {e}", err=True)


def _store(ctx: click.Context) -> YamlFileStore:
    if "store" not in ctx.obj:
        ctx.obj["store"] = YamlFileStore(ctx.obj["config"]["storage"]["path"])
    return ctx.obj["store"]


def _registry(ctx: click.Context) -> UnlockRegistry:
    uses = ctx.obj["config"]["payment"]["uses"]
    return UnlockRegistry(_store(ctx), uses=uses)


def _question_bank(ctx: click.Context) -> QuestionBank:
    return QuestionBank(ctx.obj["config"].get("content", {}).get("directory"))


def _language(ctx: click.Context, lang: Optional[str]) -> str:
    return lang or ctx.obj["config"]["app"]["default_language"]


def _bedrock_client(ai_config: Dict[str, Any]) -> BedrockClient:
    return BedrockClient(
        region=ai_config["region"],
        model_id=ai_config["model"],
        retry_attempts=ai_config.get("retry_attempts", 3),
    )


def _fail(message: str, hint: Optional[str] = None) -> None:
    click.echo(f"❌ {message}", err=True)
    if hint:
        click.echo(f"💡 {hint}", err=True)
    sys.exit(1)


@cli.command()
@click.option("--lang", "-l", type=LANG_OPTION, help="Display language")
@click.pass_context
def modules(ctx: click.Context, lang: Optional[str]):
    """List the available forms and whether they are unlocked."""
    lang = _language(ctx, lang)
    try:
        entries = _question_bank(ctx).list_modules(lang)
    except ContentError as e:
        _fail(f"Could not load form content: {e}")

    statuses = _registry(ctx).statuses()
    prices = ctx.obj["config"]["payment"]["prices"]

    click.echo("📋 Available forms:")
    for entry in entries:
        status = statuses.get(entry["id"])
        if status and status.unlocked:
            state = "🔓 unlocked"
            if entry["id"] == FORM_CHECKER_MODULE:
                state += f" ({status.uses_left} check(s) left)"
        else:
            state = f"🔒 £{price_for(entry['id'], prices):.2f}"
        detail = f"{entry['questions']} questions" if entry["kind"] == "questionnaire" else "tool"
        click.echo(f"   • {entry['id']:<18} {entry['name']} [{detail}] {state}")


@cli.command()
@click.argument("module_id")
@click.option("--lang", "-l", type=LANG_OPTION, help="Question and guidance language")
@click.option("--no-ai", is_flag=True, help="Fill the form without AI guidance")
@click.pass_context
def fill(ctx: click.Context, module_id: str, lang: Optional[str], no_ai: bool):
    """Fill in a form step by step, saving progress as you go."""
    logger = get_logger("cli.fill")
    lang = _language(ctx, lang)
    config = ctx.obj["config"]

    try:
        module = _question_bank(ctx).get_module(module_id)
    except ContentError as e:
        _fail(f"Could not load form content: {e}")
    if module is None:
        _fail(f"Unknown form: {module_id}", "Run 'pipassist modules' to see available forms")

    if not _registry(ctx).is_unlocked(module_id):
        _fail(
            f"{module.title_for(lang)} is locked",
            f"Run 'pipassist unlock {module_id}' to buy access",
        )

    engine = QuestionnaireEngine(module, _store(ctx))

    guidance = None
    if not no_ai:
        ai_config = config["ai"]
        try:
            guidance = GuidanceService(
                engine,
                _bedrock_client(ai_config),
                scheduler=GuidanceScheduler(ai_config["debounce_seconds"]),
                lang=lang,
                max_tokens=ai_config["max_tokens"],
                temperature=ai_config["temperature"],
            )
        except AIServiceError as e:
            logger.warning(f"AI guidance disabled: {e}")
            click.echo(f"⚠️  AI guidance is unavailable: {e}", err=True)

    runner = QuestionnaireRunner(
        engine,
        lang=lang,
        output_func=click.echo,
        is_pending=guidance.in_flight if guidance else None,
    )
    try:
        finished = runner.run()
    except KeyboardInterrupt:
        click.echo("\n⚠️  Stopped. Your answers have been saved.")
        finished = False
    finally:
        if guidance:
            guidance.close()

    logger.info(f"Session for '{module_id}' ended (finished={finished})")


@cli.command()
@click.option("--lang", "-l", type=LANG_OPTION, help="Display language")
@click.pass_context
def status(ctx: click.Context, lang: Optional[str]):
    """Show saved progress and unlock status for every form."""
    lang = _language(ctx, lang)
    try:
        bank = _question_bank(ctx)
        module_ids = bank.module_ids()
    except ContentError as e:
        _fail(f"Could not load form content: {e}")

    store = _store(ctx)
    statuses = _registry(ctx).statuses()

    click.echo("📊 Progress:")
    for module_id in module_ids:
        module = bank.get_module(module_id)
        engine = QuestionnaireEngine(module, store)
        visible = engine.visible_questions()
        answered = sum(1 for question in visible if engine.get_answer(question.id).value)
        unlocked = statuses.get(module_id)
        lock = "🔓" if unlocked and unlocked.unlocked else "🔒"
        click.echo(
            f"   {lock} {localized(MODULE_NAMES.get(module_id), lang) or module.title_for(lang)}: "
            f"{answered}/{len(visible)} answered"
        )

    checker = statuses.get(FORM_CHECKER_MODULE)
    if checker and checker.unlocked:
        click.echo(f"   🔓 Form checker: {checker.uses_left} check(s) left")


@cli.command()
@click.argument("module_id")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def reset(ctx: click.Context, module_id: str, yes: bool):
    """Delete saved answers for a form."""
    try:
        module = _question_bank(ctx).get_module(module_id)
    except ContentError as e:
        _fail(f"Could not load form content: {e}")
    if module is None:
        _fail(f"Unknown form: {module_id}")

    if not yes and not click.confirm(f"Delete all saved answers for {module_id}?"):
        click.echo("Nothing changed.")
        return

    QuestionnaireEngine(module, _store(ctx)).reset()
    click.echo(f"✅ Saved answers for {module_id} deleted.")


@cli.command()
@click.argument("module_id")
@click.option("--lang", "-l", type=LANG_OPTION, help="Checkout page language")
@click.pass_context
def unlock(ctx: click.Context, module_id: str, lang: Optional[str]):
    """Start a checkout to unlock a form."""
    lang = _language(ctx, lang)
    try:
        known = [entry["id"] for entry in _question_bank(ctx).list_modules(lang)]
    except ContentError as e:
        _fail(f"Could not load form content: {e}")
    if module_id not in known:
        _fail(f"Unknown form: {module_id}", "Run 'pipassist modules' to see available forms")

    checkout = _checkout(ctx)
    try:
        session = checkout.create_session(module_id, lang)
    except (PaymentError, ConfigurationError) as e:
        _fail(f"Could not start checkout: {e}")

    click.echo(f"💳 Complete your payment here:\n   {session['checkout_url']}")
    click.echo(
        f"💡 Then run 'pipassist checkout-return {module_id} --session-id {session['session_id']}'"
    )


@cli.command("checkout-return")
@click.argument("module_id")
@click.option("--session-id", help="Checkout session id from the success page")
@click.option("--cancelled", is_flag=True, help="The checkout was cancelled")
@click.pass_context
def checkout_return(ctx: click.Context, module_id: str, session_id: Optional[str], cancelled: bool):
    """Finish a checkout and unlock the form."""
    try:
        unlocked = _checkout(ctx).handle_return(module_id, session_id, cancelled)
    except (PaymentError, ConfigurationError) as e:
        _fail(f"Payment could not be confirmed: {e}")

    if unlocked:
        click.echo(f"✅ {module_id} unlocked.")
    else:
        click.echo("Checkout cancelled. Nothing was charged.")


def _checkout(ctx: click.Context) -> StripeCheckout:
    payment = ctx.obj["config"]["payment"]
    return StripeCheckout(
        _registry(ctx),
        app_url=payment["app_url"],
        currency=payment["currency"],
        prices=payment["prices"],
    )


@cli.command()
@click.argument("form_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--evidence", "-e", multiple=True, type=click.Path(exists=True, dir_okay=False),
              help="Supporting evidence file (repeatable)")
@click.option("--form-type", "-t", type=click.Choice(FORM_TYPES), default="pip", show_default=True,
              help="Kind of form being checked")
@click.option("--lang", "-l", type=LANG_OPTION, help="Report language")
@click.option("--export", "export_path", help="Write suggested improvements to this file")
@click.pass_context
def check(ctx: click.Context, form_file: str, evidence: Tuple[str, ...], form_type: str,
          lang: Optional[str], export_path: Optional[str]):
    """Score a completed form and suggest improvements."""
    lang = _language(ctx, lang)
    ai_config = ctx.obj["config"]["ai"]
    checker_config = ai_config.get("form_checker", {})

    try:
        checker = FormChecker(
            _bedrock_client(ai_config),
            _registry(ctx),
            max_tokens=checker_config.get("max_tokens", 4000),
            temperature=checker_config.get("temperature", 0.1),
        )
        click.echo("🔍 Analysing your form, this can take a minute...")
        result = checker.analyze(form_file, list(evidence), form_type, lang)
    except ModuleLockedError as e:
        _fail(str(e), "Run 'pipassist unlock form_checker' to buy checks")
    except (FormCheckError, AIServiceError) as e:
        _fail(e.message)

    click.echo(f"\n⭐ Overall: {'★' * result.overall_stars}{'☆' * (6 - result.overall_stars)} ({result.overall_stars}/6)")
    for name, score in result.scores.items():
        click.echo(f"   • {name.replace('_', ' ')}: {score}/6")

    if result.translation_summary:
        click.echo(f"\n📝 {result.translation_summary}")
    if result.key_findings:
        click.echo("\n🔎 Key findings:")
        for finding in result.key_findings:
            click.echo(f"   - {finding}")
    if result.missing_evidence:
        click.echo("\n📎 Missing evidence:")
        for item in result.missing_evidence:
            click.echo(f"   - {item}")
    if result.per_question_scores:
        click.echo("\n📊 Per question:")
        for name, score in result.per_question_scores.items():
            click.echo(f"   • {name}: {score}/6")
    steps = result.next_steps.get(lang) or result.next_steps.get("en") or []
    if steps:
        click.echo("\n🚀 Next steps:")
        for step in steps:
            click.echo(f"   - {step}")

    disclaimer = localized(result.disclaimer, lang)
    if disclaimer:
        click.echo(f"\n{disclaimer}")

    if export_path:
        try:
            with open(export_path, "w", encoding="utf-8") as f:
                f.write(export_improvements(result, lang))
        except OSError as e:
            _fail(f"Could not write improvements to {export_path}: {e}")
        click.echo(f"\n📄 Improvements saved to: {export_path}")


@cli.command()
@click.option("--init", is_flag=True, help="Initialize default configuration")
@click.option("--show", is_flag=True, help="Print the effective configuration")
@click.pass_context
def config(ctx: click.Context, init: bool, show: bool):
    """Manage PIP Assist configuration."""
    if init:
        try:
            config_manager = ConfigurationManager()
            default_config = config_manager.get_default_config()
            config_manager.save_config(default_config, ConfigurationManager.DEFAULT_CONFIG_NAME)
            click.echo(f"Default configuration saved to {ConfigurationManager.DEFAULT_CONFIG_NAME}")
        except ConfigurationError as e:
            click.echo(f"Error initializing configuration: {e}", err=True)
            sys.exit(1)
    elif show:
        from pipassist.utils.yaml_utils import YamlUtils

        click.echo(YamlUtils.dump_yaml_safe(ctx.obj["config"]), nl=False)
    else:
        click.echo("Use --init to create default configuration or --show to print it")


@cli.command()
def version():
    """Show PIP Assist version information."""
    click.echo(f"PIP Assist v{__version__}")
    click.echo(__description__)


def main():
    """Main entry point for the CLI."""
    try:
        cli()
    except KeyboardInterrupt:
        click.echo("\n⚠️  Operation cancelled by user.", err=True)
        sys.exit(130)  # Standard exit code for SIGINT
    except PipAssistError as e:
        click.echo(f"❌ PIP Assist Error: {e}", err=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
