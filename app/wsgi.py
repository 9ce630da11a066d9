from app.farmerp import create_app

app = create_app()
