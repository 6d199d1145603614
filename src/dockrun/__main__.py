from dockrun.cli.app import app

app()
