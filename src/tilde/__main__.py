from .editor import main

main()
