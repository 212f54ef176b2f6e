import sys

from pipegate.cli._io import optional_path, policy_file_for, repo_root_path
from pipegate.cli.exitcodes import EXIT_CONFIG_ERROR, exit_code_from_result
from pipegate.core.config import DriverConfig, resolve_revision_inputs
from pipegate.core.driver import DecisionDriver
from pipegate.core.errors import PolicyError
from pipegate.policy.loader import build_policy
from pipegate.reporting.text import TextDecisionRenderer


def run(
    *,
    path: str,
    base: str | None,
    head: str | None,
    policy: str | None,
    patterns: tuple[str, ...] = (),
    syntax: str = "regex",
    out: str | None = None,
    fmt: str = "json",
    append: bool = False,
    pipeline_out: str | None = None,
    summary: str | None = None,
    timeout: float,
    verbosity: str = "normal",
    tool_version: str | None = None,
) -> int:
    """
    Decide whether the full workflow should run and emit the decision.

    The policy is loaded before any revision work; a policy error aborts
    without a decision. From then on the driver always emits one.
    """
    repo_root = repo_root_path(path)
    base, head = resolve_revision_inputs(base, head)

    try:
        relevance_policy = build_policy(
            policy_file=policy_file_for(repo_root, policy),
            cli_patterns=patterns,
            cli_syntax=syntax,  # type: ignore[arg-type]
        )
    except PolicyError as e:
        print(f"pipegate: error: policy: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    cfg = DriverConfig(
        repo_root=repo_root,
        head=head,
        base=base,
        policy=relevance_policy,
        out=optional_path(out),
        output_format=fmt,  # type: ignore[arg-type]
        append=append,
        pipeline_out=optional_path(pipeline_out),
        summary_out=optional_path(summary),
        timeout=timeout,
        tool_version=tool_version,
    )

    result = DecisionDriver().run(cfg)

    verdict = TextDecisionRenderer(verbosity=verbosity).render(result.decision, result.run)  # type: ignore[arg-type]
    print(verdict, end="", file=sys.stderr)

    return exit_code_from_result(result)
