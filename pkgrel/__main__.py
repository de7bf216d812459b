from pkgrel.cli.app import main

main()
