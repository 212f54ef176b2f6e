import argparse
import logging
import sys

from pipegate.cli import decide, policy
from pipegate.cli.exitcodes import EXIT_NO_DECISION
from pipegate.core.config import DEFAULT_TIMEOUT_SECONDS
from pipegate.decision.emitter import FORMATS


def _positive_float(value: str) -> float:
    try:
        parsed = float(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"not a number: {value!r}") from e
    if parsed <= 0:
        raise argparse.ArgumentTypeError(f"must be greater than zero: {value!r}")
    return parsed


def _add_policy_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--policy", default=None, help="Relevance policy file (default: .pipegate.yml in the repo).")
    p.add_argument(
        "--pattern",
        dest="patterns",
        action="append",
        default=None,
        help="Relevance pattern, appended after policy file patterns (repeatable).",
    )
    p.add_argument(
        "--syntax",
        choices=["regex", "glob"],
        default="regex",
        help="Syntax of --pattern values without a re:/glob: prefix (default: regex).",
    )


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="pipegate", description="Pipegate: change-gated CI pipeline selection")
    p.add_argument("--version", dest="tool_version", default=None, help="Override tool version for reporting.")

    sub = p.add_subparsers(dest="cmd", required=True)

    # decide
    decide_p = sub.add_parser("decide", help="Decide whether relevant files changed and emit the decision.")
    decide_p.add_argument("path", nargs="?", default=".", help="Repository root (default: .)")
    decide_p.add_argument(
        "--base", default=None, help="Base revision (default: $PIPEGATE_BASE or $CI_COMMIT_BEFORE_SHA)."
    )
    decide_p.add_argument(
        "--head", default=None, help="Head revision (default: $PIPEGATE_HEAD, $CI_COMMIT_SHA, $GITHUB_SHA, HEAD)."
    )
    _add_policy_args(decide_p)
    decide_p.add_argument("--out", "-o", default=None, help="Decision document path (default: stdout).")
    decide_p.add_argument("--format", choices=list(FORMATS), default="json", help="Decision document format.")
    decide_p.add_argument("--append", action="store_true", help="Append to --out instead of replacing it.")
    decide_p.add_argument(
        "--pipeline-out", dest="pipeline_out", default=None, help="Write a child pipeline config including the workflow."
    )
    decide_p.add_argument("--summary", default=None, help="Append a Markdown summary (e.g. $GITHUB_STEP_SUMMARY).")
    decide_p.add_argument(
        "--timeout",
        type=_positive_float,
        default=DEFAULT_TIMEOUT_SECONDS,
        help=f"Time budget for the whole run in seconds (default: {DEFAULT_TIMEOUT_SECONDS:g}).",
    )
    verbosity = decide_p.add_mutually_exclusive_group()
    verbosity.add_argument("-q", "--quiet", action="store_true", help="Minimal output (verdict only).")
    verbosity.add_argument("-v", "--verbose", action="store_true", help="Verbose output and debug logging.")

    # policy
    pol = sub.add_parser("policy", help="Relevance policy operations.")
    pol_sub = pol.add_subparsers(dest="policy_cmd", required=True)

    pol_check = pol_sub.add_parser("check", help="Validate the relevance policy.")
    pol_check.add_argument("path", nargs="?", default=".", help="Repository root (default: .)")
    _add_policy_args(pol_check)
    pol_check.add_argument(
        "--try",
        dest="samples",
        action="append",
        default=None,
        help="Sample path to match against the policy (repeatable).",
    )

    return p


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(name)s: %(levelname)s: %(message)s",
        stream=sys.stderr,
    )


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(getattr(args, "verbose", False))

    try:
        if args.cmd == "decide":
            verbosity = "quiet" if args.quiet else ("verbose" if args.verbose else "normal")
            return decide.run(
                path=args.path,
                base=args.base,
                head=args.head,
                policy=args.policy,
                patterns=tuple(args.patterns or ()),
                syntax=args.syntax,
                out=args.out,
                fmt=args.format,
                append=args.append,
                pipeline_out=args.pipeline_out,
                summary=args.summary,
                timeout=args.timeout,
                verbosity=verbosity,
                tool_version=args.tool_version,
            )

        if args.cmd == "policy":
            if args.policy_cmd == "check":
                return policy.check(
                    path=args.path,
                    policy=args.policy,
                    patterns=tuple(args.patterns or ()),
                    syntax=args.syntax,
                    samples=tuple(args.samples or ()),
                )

        print("Unknown command.", file=sys.stderr)
        return EXIT_NO_DECISION

    except Exception as e:
        print(f"pipegate: error: {e}", file=sys.stderr)
        return EXIT_NO_DECISION


def entrypoint() -> None:
    raise SystemExit(main())


if __name__ == "__main__":
    entrypoint()
