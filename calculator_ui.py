"""
Interfaz gráfica de la calculadora.

Usa tkinter. Cada pulsación se procesa por completo en el hilo de la
interfaz antes de aceptar la siguiente: el motor no admite llamadas
concurrentes.
"""

import tkinter as tk
from tkinter import font as tkfont

from calculator_engine import CalculatorEngine
from logging_config import get_logger


log = get_logger("ui")


class CalculatorApp:
    """Ventana principal de la calculadora."""

    # ── Paleta de colores ────────────────────────────────────────
    C = {
        "bg":         "#1E1E2E",
        "display_bg": "#181825",
        "num":        "#313244",
        "num_fg":     "#CDD6F4",
        "op":         "#F38BA8",
        "op_fg":      "#1E1E2E",
        "add":        "#FAB387",
        "add_fg":     "#1E1E2E",
        "special":    "#585B70",
        "special_fg": "#CDD6F4",
        "equals":     "#A6E3A1",
        "equals_fg":  "#1E1E2E",
        "disabled":   "#45475A",
        "disabled_fg": "#7F849C",
        "expr_fg":    "#BAC2DE",
        "result_fg":  "#CDD6F4",
        "warning_fg": "#FAB387",
        "error_fg":   "#F38BA8",
    }

    # ── Definición del teclado ───────────────────────────────────
    #  Cada fila es una lista de (texto, tipo_color)

    KEYPAD = [
        [("7", "num"), ("8", "num"), ("9", "num"), ("÷", "op")],
        [("4", "num"), ("5", "num"), ("6", "num"), ("×", "op")],
        [("1", "num"), ("2", "num"), ("3", "num"), ("-", "add")],
        [("0", "num"), (".", "num"), ("C", "special"), ("+", "add")],
        [("=", "equals")],
    ]

    # Atajos del teclado físico → etiqueta de botón
    KEY_ALIASES = {
        "*": "×",
        "/": "÷",
        "Return": "=",
        "KP_Enter": "=",
        "equal": "=",
        "Escape": "C",
        "Delete": "C",
    }

    # ────────────────────────────────────────────────────────────

    def __init__(self, root: tk.Tk, engine=None):
        self.root = root
        self.root.title("Calculadora")
        self.root.configure(bg=self.C["bg"])

        self.engine = engine if engine is not None else CalculatorEngine()
        self._buttons: dict[str, tk.Button] = {}

        self._init_fonts()
        self._create_display()
        self._create_keypad()
        self._bind_keyboard()
        self._refresh()

    # ── Fuentes ──────────────────────────────────────────────────

    def _init_fonts(self):
        self._f_expr   = tkfont.Font(family="Consolas", size=20)
        self._f_result = tkfont.Font(family="Consolas", size=24, weight="bold")
        self._f_error  = tkfont.Font(family="Segoe UI", size=12)
        self._f_btn    = tkfont.Font(family="Segoe UI", size=18)

    # ── Pantalla ─────────────────────────────────────────────────

    def _create_display(self):
        frame = tk.Frame(self.root, bg=self.C["display_bg"], padx=12, pady=8)
        frame.pack(fill="x", padx=6, pady=(6, 2))

        self.expr_var = tk.StringVar()
        tk.Label(
            frame, textvariable=self.expr_var, font=self._f_expr,
            bg=self.C["display_bg"], fg=self.C["expr_fg"], anchor="e",
        ).pack(fill="x", pady=(4, 0))

        self.error_var = tk.StringVar()
        self.error_label = tk.Label(
            frame, textvariable=self.error_var, font=self._f_error,
            bg=self.C["display_bg"], fg=self.C["error_fg"], anchor="e",
        )
        self.error_label.pack(fill="x")

        self.result_var = tk.StringVar()
        tk.Label(
            frame, textvariable=self.result_var, font=self._f_result,
            bg=self.C["display_bg"], fg=self.C["result_fg"], anchor="e",
        ).pack(fill="x", pady=(2, 4))

    # ── Teclado ──────────────────────────────────────────────────

    def _create_keypad(self):
        frame = tk.Frame(self.root, bg=self.C["bg"])
        frame.pack(fill="both", expand=True, padx=6, pady=(2, 6))

        max_cols = max(len(row) for row in self.KEYPAD)
        for c in range(max_cols):
            frame.columnconfigure(c, weight=1, uniform="key")

        for r, row_def in enumerate(self.KEYPAD):
            spans = self._compute_spans(len(row_def), max_cols)
            col_pos = 0
            for idx, (text, kind) in enumerate(row_def):
                btn = tk.Button(
                    frame, text=text, font=self._f_btn,
                    bg=self.C[kind], fg=self.C[f"{kind}_fg"],
                    activebackground=self.C["special"], relief="flat",
                    command=lambda label=text: self._on_key(label),
                )
                btn.grid(row=r, column=col_pos, columnspan=spans[idx],
                         sticky="nsew", padx=2, pady=2, ipady=8)
                self._buttons[text] = btn
                col_pos += spans[idx]

        for r in range(len(self.KEYPAD)):
            frame.rowconfigure(r, weight=1)

    @staticmethod
    def _compute_spans(cols_in_row: int, max_cols: int) -> list[int]:
        """Reparte max_cols entre cols_in_row botones."""
        base, extra = divmod(max_cols, cols_in_row)
        spans = [base] * cols_in_row
        # Columnas sobrantes al último botón (generalmente '=')
        spans[-1] += extra
        return spans

    def _button_kind(self, label: str) -> str:
        for row in self.KEYPAD:
            for text, kind in row:
                if text == label:
                    return kind
        raise KeyError(label)

    # ── Atajos de teclado ────────────────────────────────────────

    def _bind_keyboard(self):
        self.root.bind("<Key>", self._on_physical_key)

    def _on_physical_key(self, event):
        label = self.KEY_ALIASES.get(event.keysym) or self.KEY_ALIASES.get(event.char)
        if label is None:
            label = event.char
        if label in self._buttons:
            self._on_key(label)
            return "break"
        return None

    # ── Acciones ─────────────────────────────────────────────────

    def _on_key(self, label: str):
        if self.engine.limit_reached and label != "C":
            return
        self.engine.press(label)
        self._refresh()

    def _refresh(self):
        engine = self.engine
        self.expr_var.set(engine.expression)
        self.result_var.set(engine.result)
        self.error_var.set(engine.error_text)
        fg = self.C["warning_fg"] if engine.severity == "warning" else self.C["error_fg"]
        self.error_label.config(fg=fg)

        halted = engine.limit_reached
        for label, btn in self._buttons.items():
            if halted and label != "C":
                btn.config(state="disabled", bg=self.C["disabled"],
                           fg=self.C["disabled_fg"])
            else:
                kind = self._button_kind(label)
                btn.config(state="normal", bg=self.C[kind],
                           fg=self.C[f"{kind}_fg"])
        if halted:
            log.debug("Teclado bloqueado: %s", engine.error_text)
