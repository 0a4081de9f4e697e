"""Main entry point for the agent loop."""

import argparse
import sys
from typing import List, Optional

import config
from agents.orchestrator import COMMANDS_HELP, Orchestrator, Outcome
from utils.exceptions import AgentError
from utils.llm_client_factory import LLMClientFactory
from utils.logger import AgentLogger


def build_orchestrator(**overrides) -> Orchestrator:
    """
    Initialize the logger, completion client and orchestrator from config.

    Args:
        **overrides: Extra Orchestrator keyword arguments (confirm, output, ...)
    """
    logger = AgentLogger(
        log_dir=config.LOG_DIR,
        log_level=config.LOG_LEVEL,
        console_level=config.CONSOLE_LOG_LEVEL,
        sync=config.LOG_FSYNC,
    )
    llm_client = LLMClientFactory.create(
        backend=config.LLM_BACKEND,
        api_key=config.LLM_API_KEY,
        base_url=config.LLM_BASE_URL,
        model=config.LLM_MODEL,
        timeout=config.LLM_TIMEOUT,
        logger=logger,
    )
    return Orchestrator(
        llm_client=llm_client,
        logger=logger,
        config=config.AGENT_CONFIG.copy(),
        **overrides
    )


def run_interactive(orchestrator: Orchestrator) -> None:
    """Read submissions from stdin until /exit or end of input."""
    while True:
        try:
            line = input("> ")
        except (EOFError, KeyboardInterrupt):
            print()
            return
        try:
            result = orchestrator.submit(line)
        except KeyboardInterrupt:
            print("\n[Interrupted] Returning to the prompt.")
            continue
        if result.outcome == Outcome.EXIT:
            return


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description='Autonomous shell and coding agent driven by a chat model',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
examples:
  shellpilot                                   # interactive prompt
  shellpilot create a hello.py that prints hi  # run one request and exit
  shellpilot --interactive check the tests     # run one request, then keep going
  shellpilot --dashboard                       # terminal dashboard
        """
    )
    parser.add_argument(
        'request',
        nargs='*',
        help='first request to submit (words are joined with spaces)'
    )
    parser.add_argument(
        '--interactive',
        action='store_true',
        help='keep accepting input after the first request completes'
    )
    parser.add_argument(
        '--dashboard',
        action='store_true',
        help='run the terminal dashboard instead of the plain prompt'
    )
    parser.add_argument(
        '--show-config',
        action='store_true',
        help='print the effective configuration at startup'
    )
    return parser.parse_intermixed_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    """
    Main entry point with command-line argument parsing.
    """
    args = parse_args(argv)
    initial_request = " ".join(args.request).strip()

    if args.show_config:
        config.print_configuration()

    if args.dashboard:
        from dashboard.app import DashboardApp
        try:
            app = DashboardApp(initial_request=initial_request or None)
        except AgentError as e:
            print(f"Error: {e}")
            sys.exit(1)
        app.run()
        return

    try:
        orchestrator = build_orchestrator()
    except AgentError as e:
        print(f"Error: {e}")
        sys.exit(1)

    if initial_request:
        result = orchestrator.submit(initial_request)
        if result.outcome == Outcome.EXIT or not args.interactive:
            sys.exit(0)
        print("Entering interactive mode...")
    else:
        print("Autonomous agent ready")
        print(COMMANDS_HELP)

    run_interactive(orchestrator)
    sys.exit(0)


if __name__ == "__main__":
    main()
