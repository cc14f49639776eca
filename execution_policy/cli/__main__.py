import sys
from typing import List, Optional

import click
from colorama import Fore, Style, init
from tabulate import tabulate

from execution_policy import config as config_module
from execution_policy.config import ExecutionPolicyConfig
from execution_policy.errors import ConfigError
from execution_policy.policies import RetryDelayType, RetryOptions

RESET = Style.RESET_ALL


def _header(*names: str) -> List[str]:
    return [Fore.GREEN + Style.BRIGHT + name + RESET for name in names]


@click.group()
def cli():
    init(autoreset=True)


@cli.command()
def ls() -> None:
    """Show the pipelines declared in pyproject.toml."""
    try:
        policy_config: Optional[ExecutionPolicyConfig] = config_module.get_execution_policy_config()
    except ConfigError as e:
        click.echo(f"{Fore.RED}ERROR!{RESET} {e}")
        sys.exit(1)
    if policy_config is None or not policy_config.pipelines:
        click.echo("No pipelines found.")
        sys.exit(0)

    table_data: List[List[str]] = []
    for pipeline in policy_config.pipelines:
        layers = pipeline.layers()
        kinds = "\n".join(f"{kind.order}. {kind.value}" for kind, _ in layers)
        settings = "\n".join(
            ", ".join(f"{key}={value}" for key, value in cfg.items()) for _, cfg in layers
        )
        table_data.append([Fore.CYAN + pipeline.name + RESET, kinds or "-", settings or "-"])

    click.echo(
        tabulate(
            table_data,
            headers=_header("Pipeline", "Layers", "Settings"),
            tablefmt="grid",
            disable_numparse=True,
        )
    )


@cli.command()
@click.argument("preset", type=click.Choice([t.value for t in RetryDelayType]))
@click.option("--attempts", type=click.IntRange(min=1), default=None, help="Override max_attempts.")
@click.option("--base-delay", type=click.FloatRange(min=0), default=None, help="Override base_delay (seconds).")
@click.option("--max-delay", type=click.FloatRange(min=0), default=None, help="Override max_delay (seconds).")
def delays(preset: str, attempts: Optional[int], base_delay: Optional[float], max_delay: Optional[float]) -> None:
    """Print the backoff schedule of a retry preset."""
    options = RetryOptions.preset(preset).copy_with(max_attempts=attempts, base_delay=base_delay, max_delay=max_delay)
    rows = []
    total = 0.0
    for attempt in range(1, options.max_attempts):
        delay = options.delay_for(attempt)
        total += delay
        rows.append([attempt, f"{delay:.3f}", f"{total:.3f}"])

    if not rows:
        click.echo(f"{preset}: a single attempt, no retries.")
        return
    click.echo(
        tabulate(
            rows,
            headers=_header("After attempt", "Delay (s)", "Elapsed (s)"),
            tablefmt="grid",
            disable_numparse=True,
        )
    )
    if options.delay_type is RetryDelayType.EXPONENTIAL_JITTER:
        click.echo(f"\n{Fore.YELLOW}Jittered by ±{options.jitter_factor:.0%}; values vary per run.{RESET}")


if __name__ == "__main__":
    cli()
