"""
Command-line interface for pentool.

Provides commands for applying edit commands to a scene and checking scene
integrity.
"""

import argparse
import json
import os
import sys

from pentool.config import load_config, save_default_config
from pentool.tracer import configure_tracer, get_tracer


def _add_trace_arguments(parser):
    parser.add_argument(
        "--trace",
        action="store_true",
        help="Enable runtime tracing",
    )
    parser.add_argument(
        "--trace-level",
        default="INFO",
        choices=["ERROR", "WARN", "INFO", "DEBUG"],
        help="Trace log level",
    )
    parser.add_argument(
        "--trace-file",
        default=None,
        help="Path to write trace logs",
    )
    parser.add_argument(
        "--trace-json",
        action="store_true",
        help="Enable JSON trace output",
    )


def build_parser():
    parser = argparse.ArgumentParser(
        prog="pentool",
        description="pentool: latched bezier curve editing core",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Ops command
    ops_parser = subparsers.add_parser("ops", help="Operations subcommands")
    ops_subparsers = ops_parser.add_subparsers(dest="ops_command")

    apply_parser = ops_subparsers.add_parser("apply", help="Apply edit commands to a scene")
    apply_parser.add_argument(
        "--ops",
        required=True,
        help="Path to commands JSON file",
    )
    apply_parser.add_argument(
        "--scene",
        default=None,
        help="Path to scene.json to start from (empty scene when omitted)",
    )
    apply_parser.add_argument(
        "--out", "-o",
        required=True,
        help="Output directory",
    )
    apply_parser.add_argument(
        "--config", "-c",
        default=None,
        help="Path to YAML configuration file",
    )
    _add_trace_arguments(apply_parser)

    # Check command
    check_parser = subparsers.add_parser("check", help="Run integrity checks on a scene")
    check_parser.add_argument(
        "--scene",
        required=True,
        help="Path to scene.json",
    )
    check_parser.add_argument(
        "--config", "-c",
        default=None,
        help="Path to YAML configuration file",
    )
    _add_trace_arguments(check_parser)

    # Init config command
    init_parser = subparsers.add_parser("init-config", help="Create default config file")
    init_parser.add_argument(
        "--out", "-o",
        default="pentool_config.yaml",
        help="Output path for config file",
    )

    return parser, ops_parser


def main(argv=None):
    """Main entry point for the CLI."""
    parser, ops_parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    # Handle commands
    if args.command == "ops":
        if args.ops_command == "apply":
            return handle_ops_apply(args)
        else:
            ops_parser.print_help()
            return 0
    elif args.command == "check":
        return handle_check(args)
    elif args.command == "init-config":
        return handle_init_config(args)

    return 0


def _configure_tracing(args, config):
    if args.trace:
        configure_tracer(
            enabled=True,
            level=args.trace_level,
            file_path=args.trace_file,
            json_output=args.trace_json,
        )
    else:
        configure_tracer(
            enabled=config.tracing.enabled,
            level=config.tracing.level,
            file_path=config.tracing.file_path,
            json_output=config.tracing.json_output,
        )


def handle_ops_apply(args):
    """Handle the ops apply command."""
    config = load_config(args.config)
    _configure_tracing(args, config)

    tracer = get_tracer()

    try:
        from pentool.commands import apply_commands
        from pentool.editor import Editor
        from pentool.io.scene import load_scene, save_scene
        from pentool.validate.report import write_report
        from pentool.validate.rules import run_integrity_checks

        with tracer.span("cli_ops_apply", module="cli"):
            editor = load_scene(args.scene, config) if args.scene else Editor(config)

            with open(args.ops, "r", encoding="utf-8") as f:
                commands = json.load(f)

            results = apply_commands(editor, commands)
            report = run_integrity_checks(editor)

            os.makedirs(args.out, exist_ok=True)
            save_scene(editor, os.path.join(args.out, "scene.json"))
            write_report(report, args.out)

        failed = [i for i, result in enumerate(results) if not result.ok]

        print(f"\nCommands applied.")
        print(f"  Commands: {len(results)} ({len(failed)} failed)")
        print(f"  Curves: {len(editor.store)}")
        print(f"  Groups: {len(editor.groups)}")
        print(f"  History: {len(editor.history)} actions, cursor at {editor.history.index}")
        print(f"  Integrity errors: {report.error_count}")
        print(f"  Integrity warnings: {report.warning_count}")
        for i in failed:
            print(f"  [!] command {i}: {results[i].error}: {results[i].message}")
        print(f"\nOutputs saved to: {args.out}/")
        print(f"  - scene.json")
        print(f"  - integrity_report.json")

        if report.has_errors:
            print(f"\n[!] Integrity errors detected. Review integrity_report.json")
            return 1

        return 0

    except Exception as e:
        tracer.event(f"Operations failed: {str(e)}", level="ERROR")
        print(f"\nError: {str(e)}", file=sys.stderr)
        return 1


def handle_check(args):
    """Handle the check command."""
    config = load_config(args.config)
    _configure_tracing(args, config)

    tracer = get_tracer()

    try:
        from pentool.io.scene import load_scene
        from pentool.validate.report import format_report
        from pentool.validate.rules import run_integrity_checks

        with tracer.span("cli_check", module="cli"):
            editor = load_scene(args.scene, config)
            report = run_integrity_checks(editor)

        print(format_report(report))
        return 1 if report.has_errors else 0

    except Exception as e:
        tracer.event(f"Check failed: {str(e)}", level="ERROR")
        print(f"\nError: {str(e)}", file=sys.stderr)
        return 1


def handle_init_config(args):
    """Handle the init-config command."""
    save_default_config(args.out)
    print(f"Default configuration saved to: {args.out}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
