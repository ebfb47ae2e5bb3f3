"""Development tasks for Invoke."""
import typing
from pathlib import Path

from invoke import Context
from invoke import task
from junitparser import JUnitXml

PACKAGE = 'sealedcookie'
PACKAGE_TESTS = f'{PACKAGE}/tests/'
SCRIPTS: typing.Tuple[str, ...] = ('tasks.py', 'fuzz.py')
TEST_SCRIPTS: typing.Tuple[str, ...] = ('test_fuzz.py',)
SOURCES: typing.Tuple[str, ...] = (f'{PACKAGE}/', *SCRIPTS, *TEST_SCRIPTS)
FUZZ_TARGETS: typing.Tuple[str, ...] = ('tokencodec', 'cookie')
FUZZ_DIR = '.fuzzed'
TEST_RUNS: typing.Tuple[typing.Tuple[str, str], ...] = (
    (PACKAGE, 'report-package.xml'),
    ('test_fuzz.py', 'report-fuzz.xml'),
)


def run_each(
    ctx: Context,
    template: str,
    sources: typing.Iterable[str],
    **kwargs: typing.Any,
) -> None:
    """Run a command once per source, formatting it with the source path.

    Args:
        ctx: Invoke context.
        template: Command with a `{source}` placeholder.
        sources: Paths to run the command for.

    Keyword Args:
        **kwargs: Additional arguments for `Context.run`.
    """
    for source in sources:
        ctx.run(template.format(source=source), echo=True, **kwargs)


@task
def flake8(ctx: Context) -> None:
    """Check style with flake8, relaxing assertion rules for tests."""
    ctx.run(f'flake8 --exclude tests {PACKAGE}/', echo=True)
    run_each(ctx, 'flake8 {source}', SCRIPTS)
    run_each(ctx, 'flake8 --ignore=S101,R701,C901 {source}', (PACKAGE_TESTS, *TEST_SCRIPTS))


@task
def pydocstyle(ctx: Context) -> None:
    """Check docstrings with pydocstyle."""
    run_each(ctx, 'pydocstyle --explain {source}', SOURCES)


@task
def darglint(ctx: Context) -> None:
    """Check docstrings match signatures with darglint."""
    run_each(ctx, 'darglint -v2 {source}', SOURCES)


@task
def bandit(ctx: Context) -> None:
    """Look for security issues with bandit, allowing asserts in tests."""
    ctx.run(f'bandit --confidence --recursive --exclude {PACKAGE_TESTS} {PACKAGE}/', echo=True)
    run_each(ctx, 'bandit --confidence --recursive {source}', SCRIPTS)
    run_each(
        ctx,
        'bandit --confidence --recursive --skip B101 {source}',
        (PACKAGE_TESTS, *TEST_SCRIPTS),
    )


@task
def mypy(ctx: Context) -> None:
    """Type check with mypy."""
    run_each(ctx, 'mypy {source}', SOURCES, pty=True)


@task(help={'diff': 'show the changes instead of applying them'})
def yapf(ctx: Context, diff: bool = False) -> None:
    """Format code with yapf."""
    mode = '--diff' if diff else '--in-place'
    ctx.run(f'yapf --recursive --parallel {mode} {" ".join(SOURCES)}', echo=True)  # noqa: Q000


@task
def trailing_commas(ctx: Context) -> None:
    """Fix trailing commas with add-trailing-comma."""
    ctx.run(
        rf'find {PACKAGE}/ -type f -name "*.py" -exec add-trailing-comma "{{}}" \+',  # noqa: P103
        echo=True,
        pty=True,
        warn=True,
    )
    run_each(ctx, 'add-trailing-comma {source}', (*SCRIPTS, *TEST_SCRIPTS), pty=True, warn=True)


# noinspection PyUnusedLocal
@task(yapf, trailing_commas)
def reformat(ctx: Context) -> None:  # pylint: disable=W0613
    """Reformat code with yapf and add-trailing-comma."""


@task
def pylint(ctx: Context) -> None:
    """Lint with pylint; only the package itself can fail the run."""
    ctx.run(f'pylint {PACKAGE}/ --ignore tests', echo=True, pty=True, warn=True)
    run_each(
        ctx,
        'pylint {source} --exit-zero',
        (PACKAGE_TESTS, *SCRIPTS, *TEST_SCRIPTS),
        pty=True,
        warn=True,
    )


# noinspection PyUnusedLocal
@task(flake8, pylint, pydocstyle, darglint, mypy, bandit)
def lint(ctx: Context) -> None:  # pylint: disable=W0613
    """Run every linter and static analyser."""


@task
def clean(ctx: Context) -> None:
    """Remove build artifacts, caches and reports."""
    artifacts = [
        'build',
        'dist',
        '*.egg-info',
        '.coverage',
        'htmlcov',
        'coverage.xml',
        '.mypy_cache',
        '.pytest_cache',
        'report.xml',
    ]
    artifacts.extend(report for _, report in TEST_RUNS)
    ctx.run(f'rm -vrf {" ".join(artifacts)}', echo=True)  # noqa: Q000
    ctx.run('find . -type d -name "__pycache__" -prune -exec rm -rf {} +', echo=True)


@task(
    aliases=['test'],
    help={
        'watch': 'rerun tests on changes with pytest-watch',
        'seed': 'pytest-randomly seed, to reproduce a given test order',
        'coverage': 'measure coverage',
        'report': 'write a merged JUnit report to "report.xml" (needs coverage)',
    },
)
def tests(  # noqa: R701
    ctx: Context,
    watch: bool = False,
    seed: int = 0,
    coverage: bool = True,
    report: bool = False,
) -> None:
    """Run the package tests, then the fuzzing harness tests."""
    base = ['pytest-watch', '--'] if watch else ['pytest']
    if seed:
        base.append(f'--randomly-seed={seed}')
    base.append(f'--cov={PACKAGE}' if coverage else '--no-cov')

    write_report = report and coverage
    for position, (target, report_file) in enumerate(TEST_RUNS):
        cmd = base.copy()
        if write_report:
            cmd.append(f'--junitxml={report_file}')
        if coverage and position:
            cmd.extend(('--cov-append', '--cov=fuzz'))
        cmd.append(target)

        ctx.run(' '.join(cmd), pty=True, echo=True)

    if write_report:
        merged = JUnitXml()
        for _, report_file in TEST_RUNS:
            merged += JUnitXml.fromfile(report_file)
        merged.write('report.xml')
        print('JUnit reports merged into report.xml')


@task
def safety(ctx: Context) -> None:
    """Check installed dependencies for known vulnerabilities."""
    ctx.run('safety check --full-report', echo=True)


@task(aliases=['cc'], help={'complex_': 'only list functions ranked B or worse'})
def cyclomatic_complexity(ctx: Context, complex_: bool = False) -> None:
    """Report cyclomatic complexity with radon."""
    threshold = ' -nb' if complex_ else ''
    ctx.run(f'radon cc -s -a{threshold} {PACKAGE}', pty=True)


@task(help={'short': 'stop each target after a fixed number of runs'})
def fuzz(ctx: Context, short: bool = True) -> None:
    """Fuzz every target in turn, keeping each corpus under ".fuzzed".

    Without a short session each target runs until cancelled with CTRL+C, which
    moves on to the next target.
    """
    runs = ' --runs 100000' if short else ''
    for target in FUZZ_TARGETS:
        corpus = Path(ctx.cwd or '.') / FUZZ_DIR / target
        corpus.mkdir(mode=0o755, parents=True, exist_ok=True)

        print(f'Fuzzing {target}, press CTRL+C to stop')
        ctx.run(f'python fuzz.py {target} {FUZZ_DIR}/{target}/{runs}', warn=True)
        print()


@task(reformat, lint, tests, safety)
def check(_: Context) -> None:
    """Run all checks."""


@task(reformat, lint, tests, safety, aliases=['ci'])
def commit(ctx: Context, amend: bool = False) -> None:
    """Run every check, then commit staged changes."""
    ctx.run('git commit --amend' if amend else 'git commit', pty=True)
