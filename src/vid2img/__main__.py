from vid2img.cli import app

app()
