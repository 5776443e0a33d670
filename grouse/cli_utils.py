"""
Error handling for the grouse command.

Library code raises exceptions; only the command entry point turns them
into messages and exit codes.
"""

import logging
import sys
import click
from functools import wraps

from rich.console import Console
from rich.markup import escape

from .exit_codes import SUCCESS, INTERRUPTED, GENERAL_ERROR, CommandError

logger = logging.getLogger(__name__)

error_console = Console(stderr=True)


def handle_errors(func):
    """
    Decorator that provides standard command behavior:
    - CommandError subclasses exit with their own exit code
    - Ctrl+C exits with INTERRUPTED
    - Click exceptions are left to click
    - Anything else is reported and exits with GENERAL_ERROR
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            func(*args, **kwargs)
        except KeyboardInterrupt:
            error_console.print("[red]Interrupted by user[/red]")
            sys.exit(INTERRUPTED)
        except click.ClickException:
            # Click exceptions already have their exit code
            raise
        except CommandError as e:
            error_console.print(f"[red]Error:[/red] {escape(str(e))}")
            sys.exit(e.exit_code)
        except Exception as e:
            logger.debug("Unexpected failure", exc_info=True)
            error_console.print(f"[red]Command failed:[/red] {escape(str(e))}")
            sys.exit(GENERAL_ERROR)
        sys.exit(SUCCESS)

    return wrapper
