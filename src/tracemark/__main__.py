from tracemark.main import app

app(prog_name="tracemark")
