"""
Task Templates - Static practice tasks attached to every lesson.
================================================================

Each lesson gets up to three tasks:

- warm-up (10 points), always
- understanding (15 points), only when the lesson has code
- find-the-bug (20 points), always

Prompts and tests are fixed templates; only the presence of code in the
lesson changes what is emitted. Solutions are Go programs checked by the
``go test`` files below.
"""

from dataclasses import dataclass

from golearning.shared.schemas import Task

FENCE = "```"


@dataclass(frozen=True)
class TaskTemplate:
    """A practice task before it is attached to a lesson."""

    title: str
    prompt_md: str
    starter_code: str
    tests_code: str
    points: int

    def build(self, order_index: int) -> Task:
        """Instantiate the template at a position in the lesson."""
        return Task(
            title=self.title,
            prompt_md=self.prompt_md,
            starter_code=self.starter_code,
            tests_code=self.tests_code,
            points=self.points,
            order_index=order_index,
        )


@dataclass(frozen=True)
class TaskTemplateSet:
    """The three templates used by one locale."""

    warmup: TaskTemplate
    understanding: TaskTemplate
    debug: TaskTemplate


# ─────────────────────────────────────────────────────────────────────────────
# Go sources shared by every locale
# ─────────────────────────────────────────────────────────────────────────────


def _starter(comment: str) -> str:
    return f"""package main

import "fmt"

func main() {{
\t// {comment}
\tfmt.Print("")
}}"""


def _output_test(test_name: str, check: str, fail_run: str) -> str:
    return f"""package main

import (
\t"bytes"
\t"os"
\t"os/exec"
\t"strings"
\t"testing"
)

func {test_name}(t *testing.T) {{
\tcmd := exec.Command("go", "run", "main.go")
\tvar out bytes.Buffer
\tcmd.Stdout = &out
\tcmd.Stderr = os.Stderr

\tif err := cmd.Run(); err != nil {{
\t\tt.Fatalf("{fail_run}: %v", err)
\t}}

\toutput := strings.TrimSpace(out.String())
{check}
}}"""


_DEBUG_SNIPPET = f"""{FENCE}go
package main

import "fmt"

func main() {{
\tvar x int = 10
\tvar y int = 0
\tfmt.Println(x / y)
}}
{FENCE}"""


# ─────────────────────────────────────────────────────────────────────────────
# Locale presets
# ─────────────────────────────────────────────────────────────────────────────

RUSSIAN_TASKS = TaskTemplateSet(
    warmup=TaskTemplate(
        title="Разогрев: базовый синтаксис",
        prompt_md=(
            'Напишите программу, которая выводит на экран текст "Hello, Go!".\n\n'
            "**Требования:**\n"
            "- Используйте функцию `fmt.Println`\n"
            "- Программа должна вывести ровно одну строку\n\n"
            f"**Пример вывода:**\n{FENCE}\nHello, Go!\n{FENCE}"
        ),
        starter_code=_starter("Ваш код здесь"),
        tests_code=_output_test(
            "TestHello",
            '\tif output != "Hello, Go!" {\n'
            '\t\tt.Errorf("Ожидалось %q, получено %q", "Hello, Go!", output)\n'
            "\t}",
            "Программа завершилась с ошибкой",
        ),
        points=10,
    ),
    understanding=TaskTemplate(
        title="На понимание: применяем концепцию",
        prompt_md=(
            "Напишите функцию, которая принимает число и возвращает его квадрат.\n\n"
            "**Требования:**\n"
            "- Создайте функцию `square(n int) int`\n"
            "- Функция должна возвращать n * n\n"
            "- В main() вызовите функцию с числом 5 и выведите результат\n\n"
            f"**Пример вывода:**\n{FENCE}\n25\n{FENCE}"
        ),
        starter_code=_starter("Напишите решение здесь"),
        tests_code=_output_test(
            "TestSquare",
            '\tif output != "25" {\n'
            '\t\tt.Errorf("Ожидалось 25, получено %q", output)\n'
            "\t}",
            "Программа завершилась с ошибкой",
        ),
        points=15,
    ),
    debug=TaskTemplate(
        title="Найди ошибку",
        prompt_md=(
            "В коде ниже есть ошибка. Найдите и исправьте её.\n\n"
            f"{_DEBUG_SNIPPET}\n\n"
            "**Задание:**\n"
            "- Исправьте код так, чтобы он корректно обрабатывал деление на ноль\n"
            '- Программа должна выводить сообщение "Деление на ноль!", если делитель равен 0\n'
            "- Если делитель не равен 0, выводите результат деления"
        ),
        starter_code=_starter("Исправьте код ниже"),
        tests_code=_output_test(
            "TestDivision",
            '\tif !strings.Contains(strings.ToLower(output), "деление на ноль") {\n'
            '\t\tt.Errorf("Программа должна обрабатывать деление на ноль")\n'
            "\t}",
            "Программа завершилась с ошибкой",
        ),
        points=20,
    ),
)

ENGLISH_TASKS = TaskTemplateSet(
    warmup=TaskTemplate(
        title="Warm-up: basic syntax",
        prompt_md=(
            'Write a program that prints "Hello, Go!".\n\n'
            "**Requirements:**\n"
            "- Use `fmt.Println`\n"
            "- Print exactly one line\n\n"
            f"**Expected output:**\n{FENCE}\nHello, Go!\n{FENCE}"
        ),
        starter_code=_starter("Your code here"),
        tests_code=_output_test(
            "TestHello",
            '\tif output != "Hello, Go!" {\n'
            '\t\tt.Errorf("expected %q, got %q", "Hello, Go!", output)\n'
            "\t}",
            "program failed",
        ),
        points=10,
    ),
    understanding=TaskTemplate(
        title="Understanding: apply the concept",
        prompt_md=(
            "Write a function that takes a number and returns its square.\n\n"
            "**Requirements:**\n"
            "- Define `square(n int) int`\n"
            "- It must return n * n\n"
            "- Call it with 5 in main() and print the result\n\n"
            f"**Expected output:**\n{FENCE}\n25\n{FENCE}"
        ),
        starter_code=_starter("Write your solution here"),
        tests_code=_output_test(
            "TestSquare",
            '\tif output != "25" {\n'
            '\t\tt.Errorf("expected 25, got %q", output)\n'
            "\t}",
            "program failed",
        ),
        points=15,
    ),
    debug=TaskTemplate(
        title="Find the bug",
        prompt_md=(
            "The code below has a bug. Find and fix it.\n\n"
            f"{_DEBUG_SNIPPET}\n\n"
            "**Task:**\n"
            "- Handle division by zero correctly\n"
            '- Print "Division by zero!" when the divisor is 0\n'
            "- Otherwise print the quotient"
        ),
        starter_code=_starter("Fix the code below"),
        tests_code=_output_test(
            "TestDivision",
            '\tif !strings.Contains(strings.ToLower(output), "division by zero") {\n'
            '\t\tt.Errorf("the program must handle division by zero")\n'
            "\t}",
            "program failed",
        ),
        points=20,
    ),
)
