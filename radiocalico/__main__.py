import uvicorn

from radiocalico.config import HOST, PORT


def main():
    uvicorn.run("radiocalico.main:app", host=HOST, port=PORT)


if __name__ == "__main__":
    main()
