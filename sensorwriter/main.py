from sensorwriter.factory import create_app

app = create_app()
