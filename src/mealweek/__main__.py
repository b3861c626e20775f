from mealweek.cli import main

main()
