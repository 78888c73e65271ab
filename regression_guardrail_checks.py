from calculator_engine import CalculatorEngine
import sys


def _type(engine: CalculatorEngine, keys: str) -> None:
	for key in keys:
		engine.press(key)


def _walk(expr: str, *, steps: int):
	"""Evalúa expr y repite '=' hasta steps veces o hasta que salte una salvaguarda."""
	engine = CalculatorEngine()
	_type(engine, expr)
	engine.press("=")
	first = engine.result
	states = []

	for _ in range(steps):
		if engine.limit_reached:
			break
		before = engine.result
		engine.press("=")
		if engine.result != before:
			states.append(engine.result)

	return engine, first, states


def inspect_repeat_chain(
	expr: str,
	*,
	steps: int = 8,
	show: int = 3,
) -> None:
	"""Imprime el resultado inicial y los primeros estados al repetir '='."""
	engine, first, states = _walk(expr, steps=steps)

	print("Repeat inspection")
	print(f"expr:           {expr}")
	print(f"initial value:  {first or '(none)'}")
	print(f"steps walked:   {steps}")
	print(f"total states:   {len(states)}")

	if states:
		limit = max(1, show)
		print("first states:")
		for i, text in enumerate(states[:limit], start=1):
			print(f"  {i}. {text}")
	else:
		print("first states:   (no changes)")

	print(f"final text:     {engine.result or '(none)'}")
	print(f"stopped by:     {engine.error_text or '(nothing)'}")


def run_regressions() -> None:
	checks: list[tuple[str, bool]] = []
	expected_actual: list[tuple[str, str, str]] = []

	engine, first, states = _walk("2+3", steps=2)
	expected_actual.append(("2+3 then = =", "11", engine.result))
	checks.append(("2+3 evaluates to 5", first == "5"))
	checks.append(("repeat adds the last operand", states[:1] == ["8"]))

	engine, _, _ = _walk("1÷0", steps=0)
	checks.append(("1÷0 overflows", engine.error_text == "Overflow"))
	engine.press("7")
	checks.append(("digits ignored while halted", engine.expression == "1÷0"))
	engine.press("C")
	checks.append(("clear resumes the session", not engine.limit_reached))

	engine, _, _ = _walk("9007199254740991+1", steps=0)
	expected_actual.append(("9007199254740991+1", "9007199254740992", engine.result))
	engine, _, _ = _walk("9007199254740992+1", steps=0)
	checks.append(("2^53+1 hits the integer ceiling", engine.error_text == "Precision limit"))

	engine, _, states = _walk("100000÷1.0000001", steps=600)
	expected_actual.append(("100000÷1.0000001 chain", "Precision limit", engine.error_text))
	checks.append(("division chain stops at the hard cap", len(states) == 511))

	engine, _, states = _walk("1÷10", steps=1200)
	expected_actual.append(("1÷10 chain", "Underflow", engine.error_text))
	checks.append(("tenfold chain underflows before the cap", len(states) < 512))

	engine, first, _ = _walk("1000000000.5×1000000000", steps=0)
	expected_actual.append(("1000000000.5×1000000000", "1.0000000005e+18", first))

	engine, first, _ = _walk("1÷3", steps=0)
	expected_actual.append(("1÷3", "0.3333333333333333", first))

	engine, first, _ = _walk("1÷3000000", steps=0)
	expected_actual.append(("1÷3000000", "3.3333333333e-7", first))

	failed = [name for name, ok in checks if not ok]
	failed.extend(label for label, expected, actual in expected_actual if expected != actual)
	for name, ok in checks:
		print(f"{name}: {'OK' if ok else 'FAIL'}")

	print("\nExpected vs Actual:")
	for label, expected, actual in expected_actual:
		status = "OK" if expected == actual else "FAIL"
		print(f"- {label}: {status}")
		print(f"  expected: {expected}")
		print(f"  actual:   {actual}")

	if failed:
		print("\nFAILED CHECKS:")
		for name in failed:
			print(f"- {name}")
		raise SystemExit(1)

	print("\nAll regression checks passed.")


if __name__ == "__main__":
	# Uso rápido:
	#   python regression_guardrail_checks.py
	#   python regression_guardrail_checks.py --inspect "100000÷1.0000001"
	#   python regression_guardrail_checks.py --inspect "1÷10" --steps 1200 --show 5
	if "--inspect" in sys.argv:
		try:
			expr = sys.argv[sys.argv.index("--inspect") + 1]
		except (ValueError, IndexError):
			raise SystemExit("Missing expression after --inspect")

		def _read_int(flag: str, default: int) -> int:
			if flag not in sys.argv:
				return default
			idx = sys.argv.index(flag)
			try:
				return int(sys.argv[idx + 1])
			except (ValueError, IndexError):
				raise SystemExit(f"Invalid value for {flag}")

		inspect_repeat_chain(
			expr,
			steps=_read_int("--steps", 8),
			show=_read_int("--show", 3),
		)
	else:
		run_regressions()
