from hipo_cli import main

main()
