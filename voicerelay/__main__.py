from voicerelay.main import run

run()
