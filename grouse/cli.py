#!/usr/bin/env python3

import click

from grouse import __version__
from grouse.arguments import parse_args
from grouse.cli_utils import handle_errors
from grouse.config import load_config, configure_logging
from grouse.git.client import GitClient
from grouse.services.diff_pipeline import DiffPipeline, PipelineOptions


@click.command(
    options_metavar='[flags]',
    context_settings={'help_option_names': ['-h', '--help']},
)
@click.version_option(version=__version__, prog_name='grouse')
@click.argument('revisions', nargs=-1, metavar='<commit> [<other-commit>]')
@click.option('--gitargs', default='', help="Arguments to pass on to 'git'")
@click.option('--diffargs', default='', help="Arguments to pass on to 'git diff'")
@click.option('--buildargs', default='', help='Arguments to pass on to the build command')
@click.option('-t', '--tool', is_flag=True, help="Invoke 'git difftool' instead of 'git diff'")
@click.option('--debug', is_flag=True, help='Enables additional logging')
@click.option('--keep-worktree', is_flag=True, hidden=True,
              help='Keep the source worktree after running. Useful for debugging, '
                   'but leaves cruft in your git directory')
@handle_errors
def cli(revisions, gitargs, diffargs, buildargs, tool, debug, keep_worktree):
    """Diffs the output of a given static site git repo at different commits.

    Imagine that on every commit of your site, you'd generated the site and
    stored that in version control. Then, you could see exactly what's
    changed in your generated site between different commits.

    grouse approximates that process. With a single revision, it is
    compared against HEAD.

    Examples:

    \b
        grouse HEAD^
        grouse main my-branch --diffargs="--stat"
        grouse v1.0 v1.1 --tool --buildargs="--environment staging"
    """
    config = load_config()
    configure_logging(config, debug)

    diff_config = config.get('diff', {})
    args = parse_args(
        revisions,
        diffargs=diffargs,
        buildargs=buildargs,
        gitargs=gitargs,
        tool=tool,
        keep_worktree=keep_worktree,
        diff_command=diff_config.get('command', 'diff'),
        tool_command=diff_config.get('tool_command', 'difftool'),
    )

    options = PipelineOptions.from_config(config, args)
    git = GitClient(executable=config.get('git', {}).get('executable', 'git'))
    DiffPipeline(options, git=git).run(args.repo_dir, args.commits)


def main():
    cli()


if __name__ == "__main__":
    main()
