from passcodes.server import run


if __name__ == "__main__":
    run()
