"""CLI commands for argodiff."""

from argodiff.commands.affected import affected
from argodiff.commands.apps import apps
from argodiff.commands.config_cmd import config
from argodiff.commands.filter_cmd import filter_cmd
from argodiff.commands.run_cmd import run_cmd

__all__ = [
    "affected",
    "apps",
    "config",
    "filter_cmd",
    "run_cmd",
]
