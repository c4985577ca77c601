from newsletter_api.cli import main

main()
