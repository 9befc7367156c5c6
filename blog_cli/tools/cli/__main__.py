"""
Allow invoking CLI as `python -m blog_cli.tools.cli`.
"""
from .main import run

run()
