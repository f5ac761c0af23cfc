from restopos import create_app

app = create_app()
