"""Punto de entrada de la calculadora."""

import tkinter as tk

from calculator_engine import CalculatorEngine
from calculator_ui import CalculatorApp
from logging_config import setup_logging


LOG_LEVEL = "WARNING"
LOG_FILE = None
WINDOW_GEOMETRY = "360x560"
WINDOW_MIN_SIZE = (320, 500)


def main():
    setup_logging(LOG_LEVEL, LOG_FILE)
    root = tk.Tk()
    root.geometry(WINDOW_GEOMETRY)
    root.minsize(*WINDOW_MIN_SIZE)
    CalculatorApp(root, engine=CalculatorEngine())
    root.mainloop()


if __name__ == "__main__":
    main()
