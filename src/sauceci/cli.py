# cli.py
from __future__ import annotations

import json
import os
import sys
from pathlib import Path
from typing import Mapping, Optional

import click

from sauceci.config import DEFAULT_API_URL, DEFAULT_HOST, DEFAULT_PORT, DEFAULT_RUNNER, RunConfig, parse_custom_data, split_tags
from sauceci.errors import EXIT_INTERRUPTED, EXIT_OK, EXIT_USAGE, ConfigError, RunError
from sauceci.platforms import select_platforms
from sauceci.runner import run_suite
from sauceci.server import create_app, serve, serve_in_background
from sauceci.ui.console import Console, get_console, set_console


def is_pull_request(env: Mapping[str, str]) -> bool:
    """Travis sets TRAVIS_PULL_REQUEST to the PR number, or "false"."""
    return env.get("TRAVIS_PULL_REQUEST", "").strip().isdigit()


def _parse_public(value: str) -> str | bool:
    return False if value.strip().lower() == "false" else value


def platform_options(fn):
    """Options that decide which platforms are tested."""
    fn = click.option("--compat-mode", default=None, help="IE document mode to force via X-UA-Compatible (e.g. 9, edge)")(fn)
    fn = click.option("--tag", "tags", multiple=True, help="Job tag; repeat or comma separate (tag 'amd' drops old Opera)")(fn)
    fn = click.option("--runner", default=DEFAULT_RUNNER, show_default=True, help="Test page path, relative to the served root")(fn)
    return fn


class SauceGroup(click.Group):
    """Click group whose usage errors exit with EXIT_USAGE instead of click's 2."""

    def parse_args(self, ctx, args):
        try:
            return super().parse_args(ctx, args)
        except click.UsageError as e:
            e.exit_code = EXIT_USAGE
            raise

    def invoke(self, ctx):
        try:
            return super().invoke(ctx)
        except click.UsageError as e:
            e.exit_code = EXIT_USAGE
            raise


@click.group(cls=SauceGroup)
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    help="Enable debug mode (show stack traces and detailed output)",
)
@click.pass_context
def cli(ctx, debug):
    """sauceci: run a browser test page across Sauce Labs platforms."""
    console = Console(debug=debug)
    set_console(console)
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug


@cli.command()
@platform_options
@click.option("--username", envvar="SAUCE_USERNAME", default="", help="Sauce Labs user name [env: SAUCE_USERNAME]")
@click.option("--access-key", envvar="SAUCE_ACCESS_KEY", default="", help="Sauce Labs access key [env: SAUCE_ACCESS_KEY]")
@click.option("--api-url", default=DEFAULT_API_URL, show_default=True, help="Sauce Labs REST base URL")
@click.option("--build", default=None, help="Build id (defaults to the first 10 chars of TRAVIS_COMMIT)")
@click.option("--custom-data", default="", help='Extra job data as a JSON object, e.g. \'"pr": 12\'')
@click.option("--framework", default="qunit", show_default=True, help="Test framework reported by the page")
@click.option("--idle-timeout", default=180, type=int, show_default=True, help="Seconds a job may idle on the farm")
@click.option("--max-duration", default=360, type=int, show_default=True, help="Maximum seconds per job on the farm")
@click.option("--name", "job_name", default="unit tests", show_default=True, help="Job name")
@click.option("--host", default=DEFAULT_HOST, show_default=True, help="Local static server host, also used in the runner URL")
@click.option("--port", default=DEFAULT_PORT, type=int, show_default=True, help="Local static server port")
@click.option("--public", default="public", show_default=True, help="Job visibility ('false' to leave it unset)")
@click.option("--record-video/--no-record-video", default=False, show_default=True)
@click.option("--record-screenshots/--no-record-screenshots", default=False, show_default=True)
@click.option("--video-upload-on-pass/--no-video-upload-on-pass", default=False, show_default=True)
@click.option("--advisor/--no-advisor", default=True, show_default=True, help="Enable Sauce Labs advisor")
@click.option("--runner-url", default=None, help="Full URL of the test page (defaults to http://<host>:<port>/<runner>)")
@click.option("--status-interval", default=5000, type=int, show_default=True, help="Milliseconds between status checks")
@click.option("--max-retries", default=3, type=int, show_default=True, help="Submissions per platform before it counts as failed")
@click.option("--tunneled/--no-tunneled", default=True, show_default=True, help="Open a Sauce Connect tunnel")
@click.option("--tunnel-id", default=None, help="Tunnel identifier (defaults to tunnel_<TRAVIS_JOB_NUMBER>)")
@click.option("--tunnel-timeout", default=120, type=int, show_default=True, help="Seconds to wait for the tunnel to come up")
@click.option("--sc-binary", default="sc", show_default=True, help="Sauce Connect executable")
@click.option("--serve/--no-serve", "serve_files", default=True, show_default=True, help="Serve the working directory locally")
@click.option("--root", default=".", show_default=True, type=click.Path(file_okay=False), help="Directory to serve")
@click.pass_context
def run(ctx, serve_files, root, **options):
    """Run the test page on every selected Sauce Labs platform."""
    console = get_console()

    if is_pull_request(os.environ):
        console.print_info("Testing skipped for pull requests")
        sys.exit(EXIT_OK)

    try:
        config = config_from_options(options, os.environ)
    except ConfigError as e:
        console.print_error("Invalid configuration", f"{e.option}: {e.message}")
        sys.exit(e.exit_code)

    platforms = select_platforms(config)
    server = None
    try:
        if serve_files:
            server = serve_in_background(create_app(root, config.compat_mode), config.port, config.host)
        status = run_suite(config, platforms, console=console)
    except RunError as e:
        console.print_debug(str(e))
        sys.exit(e.exit_code)
    except KeyboardInterrupt:
        console.clear_inline()
        sys.exit(EXIT_INTERRUPTED)
    except Exception as e:
        console.print_exception(e)
        sys.exit(1)
    finally:
        if server is not None:
            server.should_exit = True

    sys.exit(status)


@cli.command(name="platforms")
@platform_options
@click.option("--json", "as_json", is_flag=True, default=False, help="Print platforms as a JSON array")
def list_platforms(compat_mode, tags, runner, as_json):
    """List the platforms a run would test (no network access)."""
    config = RunConfig(compat_mode=compat_mode, tags=split_tags(tags), runner=runner, tunneled=False)
    selected = select_platforms(config)
    if as_json:
        click.echo(json.dumps([p.to_list() for p in selected]))
        return
    for platform in selected:
        click.echo(f"{platform.os}\t{platform.browser}\t{platform.version}")


@cli.command(name="serve")
@click.option("--host", default=DEFAULT_HOST, show_default=True)
@click.option("--port", default=DEFAULT_PORT, type=int, show_default=True)
@click.option("--compat-mode", default=None, help="IE document mode to force via X-UA-Compatible")
@click.option("--root", default=".", show_default=True, type=click.Path(exists=True, file_okay=False))
def serve_command(host, port, compat_mode, root):
    """Serve a directory the way `run` does, in the foreground."""
    get_console().print_info(f"Serving {Path(root).resolve()} on http://{host}:{port}/")
    serve(root, port, compat_mode, host=host)


def config_from_options(options: dict, env: Mapping[str, str]) -> RunConfig:
    """Turn `run` options plus CI environment into a RunConfig."""
    build: Optional[str] = options.get("build")
    if build is None:
        build = env.get("TRAVIS_COMMIT", "")[:10]
    tunnel_id = options.get("tunnel_id") or f"tunnel_{env.get('TRAVIS_JOB_NUMBER', '')}"

    return RunConfig(
        username=options["username"],
        access_key=options["access_key"],
        api_url=options["api_url"],
        build=build,
        custom_data=parse_custom_data(options["custom_data"]),
        framework=options["framework"],
        idle_timeout=options["idle_timeout"],
        job_name=options["job_name"],
        max_duration=options["max_duration"],
        public=_parse_public(options["public"]),
        record_screenshots=options["record_screenshots"],
        record_video=options["record_video"],
        advisor=options["advisor"],
        tags=split_tags(options["tags"]),
        video_upload_on_pass=options["video_upload_on_pass"],
        compat_mode=options["compat_mode"],
        host=options["host"],
        port=options["port"],
        runner=options["runner"],
        runner_url_override=options["runner_url"],
        status_interval=options["status_interval"],
        max_retries=options["max_retries"],
        tunneled=options["tunneled"],
        tunnel_id=tunnel_id,
        tunnel_timeout=options["tunnel_timeout"],
        sc_binary=options["sc_binary"],
    )


if __name__ == "__main__":
    cli()
