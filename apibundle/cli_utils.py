"""
Common CLI utilities for consistent command behavior.
"""

import json
import logging
import shutil
import sys
from functools import wraps
from pathlib import Path
from typing import Any, Dict, Optional

import click

from .exit_codes import INTERRUPTED, get_exit_code_for_exception

logger = logging.getLogger(__name__)


def handle_errors(func):
    """
    Decorator that maps exceptions to exit codes.

    Errors are reported on stderr as one JSON object:
    {"error": ..., "type": ..., "exit_code": ...}
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except KeyboardInterrupt:
            click.echo("Interrupted by user", err=True)
            sys.exit(INTERRUPTED)
        except click.ClickException:
            # Click exceptions already have their exit code
            raise
        except Exception as e:
            exit_code = get_exit_code_for_exception(e)
            error_obj = {
                "error": str(e),
                "type": type(e).__name__,
                "exit_code": exit_code,
            }
            phase = getattr(e, 'phase', None)
            if phase is not None:
                error_obj['phase'] = phase.value
            click.echo(json.dumps(error_obj, ensure_ascii=False), err=True)
            sys.exit(exit_code)

    return wrapper


def output_result(result: Dict[str, Any]):
    """Print a result dict as one JSON line on stdout."""
    click.echo(json.dumps(result, ensure_ascii=False))


def cleanup_workspace(workspace: Optional[Path], keep: bool = False) -> None:
    """Delete an operation's workspace unless asked to keep it."""
    if workspace is None:
        return
    if keep:
        logger.info(f"Keeping workspace {workspace}")
        return
    shutil.rmtree(workspace, ignore_errors=True)
    logger.debug(f"Removed workspace {workspace}")
