from taskcontract.cli.app import app

app()
