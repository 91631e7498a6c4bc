from row_stamper.cli import app

app()
