from deno_mcp.cli.main import cli

if __name__ == "__main__":
    cli(prog_name="deno-mcp")
