#!/usr/bin/env python3
# /*
# Copyright 2026 The Grove Authors.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# */

"""
cli.py - Disposable Kubernetes test environment runner for onos-config.

Subcommands:
    run      Set up a test environment, run the integration tests, tear down
    delete   Tear down the environment of a known test ID

Examples:
    # Run the default configuration with 3 onos-config nodes
    ./cli.py run --nodes 3

    # Forward arguments to the test container
    ./cli.py run --config multi-device -- -test.run TestTransaction

    # Clean up an environment left behind by an aborted run
    ./cli.py delete 4f0c6a1e-ef0a-11e9-8b8c-0242ac110002

Settings can also be supplied through ONOS_TEST_* environment variables.
For detailed usage information, run: ./cli.py --help
"""

from __future__ import annotations

import logging
import sys

import typer

from testenv_manager import console
from testenv_manager.commands import delete_cmd, run_cmd

app = typer.Typer(
    help="Disposable Kubernetes test environment runner for onos-config.",
    no_args_is_help=True,
)


@app.callback()
def _main_callback() -> None:
    """Initialize logging for all subcommands."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )


app.command(
    "run",
    context_settings={"allow_extra_args": True, "ignore_unknown_options": True},
)(run_cmd.run)
app.command("delete")(delete_cmd.delete)


def main() -> None:
    try:
        app()
    except Exception as e:
        console.print(f"[red]\u274c {e}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
