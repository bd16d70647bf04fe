"""
Command-line interface for eenv.

This module orchestrates all other components and provides
the user-facing CLI commands:
- init
- update
- apply
- pre-commit
- hook
- status
- help
"""

from __future__ import annotations

import argparse
import getpass
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .apply import ApplyReport
from .config import TOOL_VERSION, load_key
from .errors import (
    EXIT_FAILURE,
    EXIT_INTERRUPTED,
    EXIT_OK,
    DecryptionAuthFailure,
    EenvError,
)
from .gitwrap import git_add, staged_files
from .hooks import install_hook, uninstall_hook
from .keys import describe_key
from .pipeline import needs_key_adoption, repo_status, run_apply, run_init, run_update
from .precommit import run_gate
from .settings import Settings
from .store import LocalFileStore
from .utils import find_repo_root

MAX_KEY_ATTEMPTS = 3


# ---------------------------------------------------------------------------
# Color output helpers
# ---------------------------------------------------------------------------


class Colors:
    """ANSI color codes for terminal output."""
    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    BLUE = "\033[94m"
    CYAN = "\033[96m"
    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"


def colored(text: str, color: str) -> str:
    """Return colored text for terminal output."""
    return f"{color}{text}{Colors.RESET}"


def print_error(msg: str) -> None:
    """Print error message to stderr."""
    print(colored(f"✖ {msg}", Colors.RED), file=sys.stderr)


def print_success(msg: str) -> None:
    """Print success message."""
    print(colored(f"✔ {msg}", Colors.GREEN))


def print_warning(msg: str) -> None:
    """Print warning message to stderr."""
    print(colored(f"⚠ {msg}", Colors.YELLOW), file=sys.stderr)


def print_info(msg: str) -> None:
    """Print info message."""
    print(colored(f"ℹ {msg}", Colors.CYAN))


def plural(count: int, word: str) -> str:
    return f"{count} {word}{'' if count == 1 else 's'}"


# ---------------------------------------------------------------------------
# CLI context
# ---------------------------------------------------------------------------


class CLIContext:
    """Shared context for CLI commands."""

    def __init__(self, cwd: Path, verbose: bool, quiet: bool):
        self.cwd = cwd
        self.verbose = verbose
        self.quiet = quiet

        # Lazy-loaded
        self._root: Optional[Path] = None
        self._store: Optional[LocalFileStore] = None
        self._settings: Optional[Settings] = None

    @property
    def root(self) -> Path:
        if self._root is None:
            self._root = find_repo_root(self.cwd)
        return self._root

    @property
    def store(self) -> LocalFileStore:
        if self._store is None:
            self._store = LocalFileStore(self.root)
        return self._store

    @property
    def settings(self) -> Settings:
        """Load eenv.yml lazily."""
        if self._settings is None:
            self._settings = Settings.load(self.store)
        return self._settings

    def log(self, msg: str) -> None:
        """Log message if not quiet."""
        if not self.quiet:
            print(msg)

    def success(self, msg: str) -> None:
        if not self.quiet:
            print_success(msg)

    def log_verbose(self, msg: str) -> None:
        """Log message if verbose."""
        if self.verbose:
            print(colored(f"  → {msg}", Colors.BLUE))


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def prompt_key(prompt: str) -> str:
    if not sys.stdin.isatty():
        return sys.stdin.readline().strip()
    return getpass.getpass(colored(prompt, Colors.CYAN)).strip()


# ---------------------------------------------------------------------------
# Command implementations
# ---------------------------------------------------------------------------


def cmd_init(ctx: CLIContext, args: argparse.Namespace) -> int:
    """
    Store (or adopt) the shared key, then write examples and ignore entries.
    """
    store, settings = ctx.store, ctx.settings
    ctx.log_verbose(f"Repository root: {ctx.root}")

    if not args.no_hook:
        try:
            install_hook(ctx.root, settings)
        except EenvError as e:
            print_warning(f"Could not install pre-commit hook: {e}")

    adopting = needs_key_adoption(store, settings)
    key = args.key
    attempts = 1 if key is not None else MAX_KEY_ATTEMPTS

    for attempt in range(1, attempts + 1):
        if key is None:
            if adopting:
                ctx.log(f"Found {colored(settings.artifact_name, Colors.CYAN)} but no stored key.")
                key = prompt_key("Enter the shared key: ")
            else:
                key = prompt_key("Encryption key (leave blank to auto-generate): ")

        try:
            report = run_init(store, settings, key=key)
            break
        except DecryptionAuthFailure:
            print_error(f"Invalid key for {settings.artifact_name}")
            if attempt == attempts:
                return EXIT_FAILURE
            key = None

    ctx.success(f"Saved key to {settings.config_name}"
                + (" (generated)" if report.key_generated else ""))
    if report.config_backup:
        print_warning(f"Previous invalid config saved to {report.config_backup}")
    _report_gitignore(ctx, report.gitignore, report.gitignore_error)
    ctx.success(f"Wrote {plural(report.examples.count, 'example file')}")
    if report.applied is not None:
        _report_apply(ctx, report.applied)
    return EXIT_OK


def cmd_update(ctx: CLIContext, args: argparse.Namespace) -> int:
    """
    Rewrite examples and re-encrypt every env file into the artifact.
    """
    report = run_update(ctx.store, ctx.settings)

    for path in report.encrypted:
        ctx.log_verbose(f"Encrypted {path}")
    ctx.success(f"Wrote {plural(report.examples.count, 'example file')}")
    ctx.success(f"Encrypted {plural(len(report.encrypted), 'env file')} → {report.artifact}")
    _report_gitignore(ctx, report.gitignore, report.gitignore_error)
    if not ctx.quiet:
        print(colored(
            f"You can commit {report.artifact}; it is encrypted with the key in "
            f"{ctx.settings.config_name}.",
            Colors.DIM,
        ))
    return EXIT_OK


def cmd_apply(ctx: CLIContext, args: argparse.Namespace) -> int:
    """
    Decrypt the artifact and write env files that do not exist yet.
    """
    try:
        report = run_apply(ctx.store, ctx.settings, force=args.force)
    except DecryptionAuthFailure as e:
        print_error(str(e))
        print_info('Re-enter the shared key with "eenv init".')
        return e.exit_code

    _report_apply(ctx, report)
    ctx.log_verbose(f"Root: {ctx.root}")
    return EXIT_OK


def cmd_pre_commit(ctx: CLIContext, args: argparse.Namespace) -> int:
    """
    Refuse commits that stage raw env files.
    """
    staged = staged_files(ctx.root)
    ctx.log_verbose(f"{plural(len(staged), 'staged path')}")

    result = run_gate(ctx.store, ctx.settings, staged, write=args.write)

    if result.restage:
        # ignore rules like .env* may match companions; restage never holds real files
        git_add(ctx.root, result.restage, force=True)
        for path in result.restage:
            ctx.log_verbose(f"Re-staged {path}")

    if result.allowed:
        ctx.log_verbose(result.message)
    else:
        print_error(result.message)
    return result.exit_code


def cmd_hook(ctx: CLIContext, args: argparse.Namespace) -> int:
    """
    Install or remove the git pre-commit hook.
    """
    if args.action == "install":
        report = install_hook(ctx.root, ctx.settings, force=args.force)
        for path in report.backups:
            print_warning(f"Backed up existing hook to {path}")
        for path in report.kept:
            if not args.force:
                ctx.log_verbose(f"Kept {path}")
        ctx.success(f"Hook installed in {report.hooks_dir} (force={args.force})")
    else:
        report = uninstall_hook(ctx.root, force=args.force)
        for path in report.kept:
            print_warning(f"Left foreign hook in place: {path} (use --force)")
        ctx.success(f"Removed {plural(len(report.removed), 'hook')}")
    return EXIT_OK


def cmd_status(ctx: CLIContext, args: argparse.Namespace) -> int:
    """
    Show what eenv finds in the repository.
    """
    status = repo_status(ctx.store, ctx.settings)

    if args.json:
        print(json.dumps(status.to_dict(), indent=2))
        return EXIT_OK

    def flag(ok: bool) -> str:
        return colored("yes", Colors.GREEN) if ok else colored("no", Colors.YELLOW)

    ctx.log(colored("Repository Status", Colors.BOLD))
    ctx.log("")
    ctx.log(f"  Root:          {ctx.root}")
    ctx.log(f"  Env files:     {len(status.real)}")
    ctx.log(f"  Examples:      {len(status.examples)}")
    ctx.log(f"  Artifact:      {flag(status.artifact)}")
    ctx.log(f"  Key stored:    {flag(status.config_valid)}")
    if ctx.verbose:
        if status.config_valid:
            key_format = describe_key(load_key(ctx.store, ctx.settings))
            ctx.log(f"  Key format:    {key_format}")
        for path in status.real:
            ctx.log(f"    - {path}")
    ctx.log("")
    return EXIT_OK


def cmd_help(ctx: Optional[CLIContext], args: argparse.Namespace) -> int:
    """
    Show help message.
    """
    help_text = f"""
{colored('eenv', Colors.BOLD)}: encrypted .env files you can commit

{colored('USAGE:', Colors.CYAN)}
  eenv <command> [options]

{colored('COMMANDS:', Colors.CYAN)}
  init                      Store the shared key, write .example files,
                            update .gitignore and install the hook
  update                    Rewrite .example files and re-encrypt all env
                            files into eenv.enc.json
  apply [--force]           Decrypt eenv.enc.json into env files
  pre-commit [--write]      Block commits that stage raw env files
  hook install|uninstall    Manage the git pre-commit hook
  status [--json]           Show what eenv finds in the repository
  help                      Show this help message

{colored('GLOBAL OPTIONS:', Colors.CYAN)}
  -v, --verbose             Enable verbose output
  -q, --quiet               Suppress non-error output

{colored('EXIT CODES:', Colors.CYAN)}
  0 success, 1 failure, 3 commit blocked, 130 interrupted

{colored('VERSION:', Colors.CYAN)}
  {TOOL_VERSION}
"""
    print(help_text)
    return EXIT_OK


def _report_gitignore(ctx: CLIContext, edit, error: Optional[str]) -> None:
    if error:
        print_warning(f"Could not update .gitignore: {error}")
    elif edit is not None and edit.changed:
        ctx.success(f"Added {plural(len(edit.added), 'path')} to {edit.path}")


def _report_apply(ctx: CLIContext, report: ApplyReport) -> None:
    ctx.success(f"Wrote {plural(report.written, 'env file')}")
    if report.skipped:
        ctx.log(colored(
            f"ℹ Skipped {plural(report.skipped, 'existing file')} (use --force to overwrite)",
            Colors.DIM,
        ))


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="eenv",
        description="Encrypted .env files you can commit",
        add_help=False,
    )

    # Global options
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose output")
    parser.add_argument("-q", "--quiet", action="store_true", help="Suppress non-error output")
    parser.add_argument("-h", "--help", action="store_true", help="Show help message")

    # Subcommands
    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    init_parser = subparsers.add_parser("init", help="Set up the key and examples")
    init_parser.add_argument("--key", help="Use this key instead of prompting")
    init_parser.add_argument("--no-hook", action="store_true", help="Do not install the pre-commit hook")

    subparsers.add_parser("update", help="Re-encrypt env files")

    apply_parser = subparsers.add_parser("apply", help="Decrypt env files")
    apply_parser.add_argument("--force", action="store_true", help="Overwrite existing files")

    gate_parser = subparsers.add_parser("pre-commit", help="Commit gate")
    gate_parser.add_argument("--write", action="store_true", help="Regenerate and re-stage artifacts")

    hook_parser = subparsers.add_parser("hook", help="Manage the pre-commit hook")
    hook_parser.add_argument("action", choices=["install", "uninstall"])
    hook_parser.add_argument("--force", action="store_true", help="Replace or remove foreign hooks")

    status_parser = subparsers.add_parser("status", help="Show repository state")
    status_parser.add_argument("--json", action="store_true", help="Output status as JSON")

    subparsers.add_parser("help", help="Show help message")

    return parser


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.help or not args.command:
        return cmd_help(None, args)

    configure_logging(args.verbose)

    ctx = CLIContext(cwd=Path.cwd(), verbose=args.verbose, quiet=args.quiet)

    commands = {
        "init": cmd_init,
        "update": cmd_update,
        "apply": cmd_apply,
        "pre-commit": cmd_pre_commit,
        "hook": cmd_hook,
        "status": cmd_status,
        "help": cmd_help,
    }

    cmd_func = commands.get(args.command)
    if not cmd_func:
        print_error(f"Unknown command: {args.command}")
        return EXIT_FAILURE

    try:
        return cmd_func(ctx, args)
    except EenvError as e:
        print_error(str(e))
        return e.exit_code
    except KeyboardInterrupt:
        print_error("Interrupted")
        return EXIT_INTERRUPTED
    except Exception as e:
        print_error(f"Unexpected error: {e}")
        if args.verbose:
            import traceback
            traceback.print_exc()
        return EXIT_FAILURE


if __name__ == "__main__":
    sys.exit(main())
