from .babysitter import main


main()
