from psi_report.cli import cli

cli()
