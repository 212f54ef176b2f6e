import sys

from pipegate.cli._io import policy_file_for, repo_root_path
from pipegate.cli.exitcodes import EXIT_CONFIG_ERROR, EXIT_OK
from pipegate.core.errors import PolicyError
from pipegate.policy.filter import match_any
from pipegate.policy.loader import build_policy


def check(
    *,
    path: str,
    policy: str | None,
    patterns: tuple[str, ...] = (),
    syntax: str = "regex",
    samples: tuple[str, ...] = (),
) -> int:
    """
    Validate the relevance policy and optionally try it on sample paths.
    """
    repo_root = repo_root_path(path)

    try:
        relevance_policy = build_policy(
            policy_file=policy_file_for(repo_root, policy),
            cli_patterns=patterns,
            cli_syntax=syntax,  # type: ignore[arg-type]
        )
    except PolicyError as e:
        print(f"pipegate: error: policy: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    lines: list[str] = []
    lines.append(f"policy: {relevance_policy.source or '(command line)'}")
    if relevance_policy.is_empty():
        lines.append("patterns: none (every change set is irrelevant)")
    else:
        lines.append("patterns:")
        for i, p in enumerate(relevance_policy.patterns):
            flags = " (ignore case)" if p.ignore_case else ""
            lines.append(f"  #{i} {p.syntax:<5} {p.source}{flags}")
    lines.append("workflows:")
    lines.append(f"  full:  {relevance_policy.workflows.full}")
    lines.append(f"  empty: {relevance_policy.workflows.empty}")

    if samples:
        lines.append("samples:")
        for sample in samples:
            hit = match_any(sample, relevance_policy.patterns)
            lines.append(f"  {'✓' if hit else '-'} {sample}")

    print("\n".join(lines))
    return EXIT_OK
