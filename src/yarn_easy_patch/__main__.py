from .cli import app

app(prog_name="yarn-easy-patch")
