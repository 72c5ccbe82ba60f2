"""CLI entrypoint: Typer app definition and command registration"""

import typer

from sitepub.cli.commands import (
    export_meta_cmd, generate_cmd, import_cmd, init_cmd, publish_cmd, schedule_cmd, setting_cmd, site_add_cmd,
)


app = typer.Typer(name="sitepub", no_args_is_help=True, help="Multi-site static publishing pipeline")

app.command(name="init")(init_cmd)
app.command(name="site-add")(site_add_cmd)
app.command(name="setting")(setting_cmd)
app.command(name="generate")(generate_cmd)
app.command(name="export-meta")(export_meta_cmd)
app.command(name="import")(import_cmd)
app.command(name="publish")(publish_cmd)
app.command(name="schedule")(schedule_cmd)
