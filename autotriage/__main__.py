from autotriage.main import cli

cli()
