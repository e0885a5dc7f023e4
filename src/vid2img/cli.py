"""Main CLI entry point for vid2img using Cyclopts."""

from cyclopts import App

from vid2img.cmd import avif_cmd, webp_cmd

app = App(
    name="vid2img",
    help="Convert videos into AVIF or WebP images and animations.",
    help_format="rich",
)


# Register all commands
app.command(name="avif")(avif_cmd.avif)
app.command(name="webp")(webp_cmd.webp)


if __name__ == "__main__":
    app()
