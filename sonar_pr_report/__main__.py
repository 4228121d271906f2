from sonar_pr_report.cli import cli

cli()
