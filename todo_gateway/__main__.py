from todo_gateway.main import run

run()
