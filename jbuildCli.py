#!/usr/bin/env python3
#****************************************************************************************************************************************************
#* BSD 3-Clause License
#*
#* Copyright (c) 2025, Mana Battery
#* All rights reserved.
#*
#* Redistribution and use in source and binary forms, with or without modification, are permitted provided that the following conditions are met:
#*
#* 1. Redistributions of source code must retain the above copyright notice, this list of conditions and the following disclaimer.
#* 2. Redistributions in binary form must reproduce the above copyright notice, this list of conditions and the following disclaimer in the
#*    documentation and/or other materials provided with the distribution.
#* 3. Neither the name of the copyright holder nor the names of its contributors may be used to endorse or promote products derived from this
#*    software without specific prior written permission.
#*
#* THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS "AS IS" AND ANY EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO,
#* THE IMPLIED WARRANTIES OF MERCHANTABILITY AND FITNESS FOR A PARTICULAR PURPOSE ARE DISCLAIMED. IN NO EVENT SHALL THE COPYRIGHT HOLDER OR
#* CONTRIBUTORS BE LIABLE FOR ANY DIRECT, INDIRECT, INCIDENTAL, SPECIAL, EXEMPLARY, OR CONSEQUENTIAL DAMAGES (INCLUDING, BUT NOT LIMITED TO,
#* PROCUREMENT OF SUBSTITUTE GOODS OR SERVICES; LOSS OF USE, DATA, OR PROFITS; OR BUSINESS INTERRUPTION) HOWEVER CAUSED AND ON ANY THEORY OF
#* LIABILITY, WHETHER IN CONTRACT, STRICT LIABILITY, OR TORT (INCLUDING NEGLIGENCE OR OTHERWISE) ARISING IN ANY WAY OUT OF THE USE OF THIS SOFTWARE,
#* EVEN IF ADVISED OF THE POSSIBILITY OF SUCH DAMAGE.
#****************************************************************************************************************************************************

"""Incremental build and run tool for small Java programs.

Dependencies are declared in the leading block comment of each source file:

    /*
     * using "Helper.java"
     */

jbuild resolves the declared dependencies of an entry file, orders them,
compares their content hashes with the build cache and hands only the
changed files to javac, in a single invocation. References to sibling
classes that are not declared are reported, or compiled too with
--auto-implicit.

Requirements:
    - Python 3.11+
    - A JDK (javac and java on the PATH, or JAVA_HOME)
    - networkx, colorama, packaging

Usage:
    jbuildCli.py build [FILE] [-f] [-v] [--strict] [--auto-implicit]
    jbuildCli.py run [FILE] [-- ARGS...]
    jbuildCli.py tree [FILE]
    jbuildCli.py clean
    jbuildCli.py init [--force]

Exit Codes:
    0: Success
    1: Invalid arguments, missing entry file or invalid configuration
    2: Dependency graph or toolchain error
    3: Compilation failed
    4: Program exited with a non-zero status
    130: Interrupted
"""

import sys
import signal
import logging
import argparse
import traceback
from typing import Any, List, Optional, Tuple

from jbuild.build_orchestrator import BuildOptions, BuildOrchestrator
from jbuild.cache_utils import InvalidationPolicy
from jbuild.clean_utils import clean
from jbuild.color_utils import Colors, colored, print_error, print_info, print_success, print_warning, should_use_color
from jbuild.config_utils import JBuildConfig, load_config, write_config_template
from jbuild.constants import (
    DEFAULT_ENTRY_FILE,
    EXIT_INVALID_ARGS,
    EXIT_KEYBOARD_INTERRUPT,
    EXIT_RUNTIME_ERROR,
    EXIT_SUCCESS,
    CompilationError,
    JBuildError,
    RuntimeFailureError,
)
from jbuild.error_format import format_compiler_errors, format_runtime_errors
from jbuild.graph_types import BuildPlan
from jbuild.package_verification import require_all_packages

__version__ = "1.0.0"

# Export for tests
__all__ = ["EXIT_SUCCESS", "main"]

PROGRAM_ARGS_SEPARATOR = "--"


def signal_handler(signum: int, frame: Any) -> None:
    """Handle interrupt signals gracefully."""
    print_warning("\nInterrupted by user. Exiting...", prefix=False)
    sys.exit(EXIT_KEYBOARD_INTERRUPT)


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser with all subcommands."""
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--verbose", "-v", action="store_true", help="Show the build order, per-file compile reasons and debug logging")
    common.add_argument("--force", "-f", action="store_true", help="Recompile every file regardless of the build cache")
    common.add_argument("--auto-implicit", action="store_true", help="Compile referenced but undeclared sibling classes too")
    common.add_argument("--strict", action="store_true", help="Also recompile everything that depends on a changed file")
    common.add_argument("--config", metavar="PATH", help="Configuration file (default: ./jbuild.toml)")
    common.add_argument("--no-color", action="store_true", help="Disable colored output")

    parser = argparse.ArgumentParser(
        description="Incremental build and run tool for small Java programs.",
        epilog="""
Dependencies are declared in the first block comment of a file:
    /*
     * using "Helper.java"
     */

Examples:
  jbuildCli.py build Main.java
  jbuildCli.py run Main.java -- arg1 arg2
  jbuildCli.py tree --auto-implicit
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    file_help = "Entry file (default: configured entrypoint, then Main.java)"
    build_cmd = subparsers.add_parser("build", parents=[common], help="Compile an entry file and its dependencies")
    build_cmd.add_argument("file", nargs="?", help=file_help)

    run_cmd = subparsers.add_parser("run", parents=[common], help="Build, then run the entry file (arguments after --)")
    run_cmd.add_argument("file", nargs="?", help=file_help)

    tree_cmd = subparsers.add_parser("tree", parents=[common], help="Show the dependency tree of an entry file")
    tree_cmd.add_argument("file", nargs="?", help=file_help)

    subparsers.add_parser("clean", parents=[common], help="Remove the output directory and the build cache")

    init_cmd = subparsers.add_parser("init", help="Create a jbuild.toml with default settings")
    init_cmd.add_argument("--force", "-f", action="store_true", help="Overwrite an existing jbuild.toml")
    init_cmd.add_argument("--config", metavar="PATH", help="File to create (default: ./jbuild.toml)")
    init_cmd.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    init_cmd.add_argument("--no-color", action="store_true", help="Disable colored output")

    return parser


def split_program_args(argv: List[str]) -> Tuple[List[str], List[str]]:
    """Split the command line at the first '--' into tool and program arguments."""
    if PROGRAM_ARGS_SEPARATOR not in argv:
        return argv, []
    index = argv.index(PROGRAM_ARGS_SEPARATOR)
    return argv[:index], argv[index + 1 :]


def resolve_target(args: argparse.Namespace, config: JBuildConfig) -> str:
    """Entry file from the command line, the configured entrypoint, or Main.java."""
    return args.file or config.entrypoint or DEFAULT_ENTRY_FILE


def make_options(args: argparse.Namespace, program_args: Optional[List[str]] = None) -> BuildOptions:
    """Translate command-line flags into build options. Unset flags defer to the configuration."""
    return BuildOptions(
        force=args.force,
        verbose=args.verbose,
        auto_include=True if args.auto_implicit else None,
        policy=InvalidationPolicy.TRANSITIVE if args.strict else None,
        program_args=list(program_args or []),
    )


def report_plan(plan: BuildPlan, verbose: bool) -> None:
    """Print what the build is about to do."""
    if verbose:
        print(colored("📋 Build order:", Colors.CYAN, Colors.BRIGHT))
        for number, key in enumerate(plan.order, 1):
            reason = plan.reasons.get(key)
            status = colored(f"compile ({reason})", Colors.YELLOW) if reason else colored("cached", Colors.BRIGHT_BLACK)
            print(f"  {number}. {key} {status}")

    if plan.to_compile:
        print_info(f"⚡ Compiling {len(plan.to_compile)} file(s)...")


def run_build(args: argparse.Namespace, config: JBuildConfig) -> int:
    """Handle the 'build' command."""
    print_info("🔄 Checking dependencies...")
    orchestrator = BuildOrchestrator(config, on_plan=lambda plan: report_plan(plan, args.verbose))
    result = orchestrator.build(resolve_target(args, config), make_options(args))

    if result.up_to_date:
        print_success("✅ Everything up to date")
        return EXIT_SUCCESS

    # javac warnings on a successful build
    if result.compiler is not None and result.compiler.diagnostics.strip():
        print_warning(result.compiler.diagnostics.rstrip(), prefix=False)
    if not result.cache_saved:
        print_warning("Build cache could not be saved; the next build recompiles these files")

    print_success(f"✅ Build complete ({len(result.compiled)} compiled, {len(result.skipped)} skipped)")
    return EXIT_SUCCESS


def run_program(args: argparse.Namespace, config: JBuildConfig, program_args: List[str]) -> int:
    """Handle the 'run' command."""
    print_info("🔄 Checking dependencies...")
    orchestrator = BuildOrchestrator(config, on_plan=lambda plan: report_plan(plan, args.verbose))
    result = orchestrator.run(resolve_target(args, config), make_options(args, program_args))

    print_info(f"🚀 Running {result.entry_symbol}...")
    sys.stdout.write(result.process.stdout)
    sys.stdout.flush()
    if result.succeeded and result.process.stderr:
        sys.stderr.write(result.process.stderr)

    result.check()
    return EXIT_SUCCESS


def show_tree(args: argparse.Namespace, config: JBuildConfig) -> int:
    """Handle the 'tree' command."""
    orchestrator = BuildOrchestrator(config)
    for line in orchestrator.tree(resolve_target(args, config), True if args.auto_implicit else None):
        print(line)
    return EXIT_SUCCESS


def run_clean(config: JBuildConfig) -> int:
    """Handle the 'clean' command."""
    removed = clean(config)
    if not removed:
        print_info("Nothing to clean")
    for path in removed:
        print_success(f"🧹 Removed {path}")
    return EXIT_SUCCESS


def run_init(args: argparse.Namespace) -> int:
    """Handle the 'init' command."""
    path = write_config_template(args.config, force=args.force)
    print_success(f"✅ Created {path}")
    return EXIT_SUCCESS


def dispatch(args: argparse.Namespace, program_args: List[str]) -> int:
    """Run the selected command. Exceptions propagate to main()."""
    require_all_packages("jbuild")

    if args.command == "init":
        return run_init(args)

    config = load_config(args.config)
    if args.command == "build":
        return run_build(args, config)
    if args.command == "run":
        return run_program(args, config, program_args)
    if args.command == "tree":
        return show_tree(args, config)
    return run_clean(config)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point.

    Args:
        argv: Command-line arguments (default: sys.argv[1:])

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    tool_args, program_args = split_program_args(list(sys.argv[1:] if argv is None else argv))
    parser = build_parser()
    args = parser.parse_args(tool_args)

    if args.command is None:
        parser.print_help()
        return EXIT_INVALID_ARGS
    if program_args and args.command != "run":
        parser.error(f"arguments after '{PROGRAM_ARGS_SEPARATOR}' are only accepted by 'run'")

    log_level = logging.DEBUG if args.verbose else logging.WARNING
    logging.basicConfig(level=log_level, format="%(levelname)s: %(message)s")

    if not should_use_color(no_color=args.no_color):
        Colors.disable()

    try:
        return dispatch(args, program_args)
    except KeyboardInterrupt:
        print_warning("\nOperation cancelled by user", prefix=False)
        return EXIT_KEYBOARD_INTERRUPT
    except CompilationError as e:
        sys.stderr.write(format_compiler_errors(e.diagnostics))
        if args.verbose:
            print(f"Compiler command: {' '.join(e.command)}", file=sys.stderr)
            print(e.diagnostics, file=sys.stderr)
        print_error(str(e))
        return e.exit_code
    except RuntimeFailureError as e:
        if e.stderr.strip():
            sys.stderr.write(format_runtime_errors(e.stderr))
        print_error(str(e))
        return e.exit_code
    except JBuildError as e:
        print_error(str(e))
        return e.exit_code
    except Exception as e:
        print_error(f"Unexpected error: {e}")
        if args.verbose:
            traceback.print_exc()
        return EXIT_RUNTIME_ERROR


if __name__ == "__main__":
    sys.exit(main())
