from extpack import cli

if __name__ == "__main__":
    cli.cli()
