from price_avs.cli import main

main()
