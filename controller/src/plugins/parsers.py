"""
Result parsers for test and lint output.
"""

import os
import re
from typing import Any, Dict, List
from xml.etree import ElementTree

from controller.src.services.command import PluginError

FLAKE8_LINE = re.compile(r"^(?P<file>.+?):(?P<line>\d+):(?P<column>\d+): (?P<code>[A-Z]+\d+) (?P<message>.*)$")

class JUnitParser:
    """Parse a JUnit XML report into test cases and totals."""

    def __init__(self, report_path: str):
        self.report_path = report_path
        self.total_tests = 0
        self.total_failures = 0
        self.total_errors = 0
        self.total_time = 0.0

    def parse(self) -> List[Dict[str, Any]]:
        if not os.path.isfile(self.report_path):
            return []

        try:
            root = ElementTree.parse(self.report_path).getroot()
        except ElementTree.ParseError as e:
            raise PluginError(f"Invalid JUnit report {self.report_path}: {e}") from e

        cases = []
        for case in root.iter("testcase"):
            duration = float(case.get("time") or 0)
            self.total_tests += 1
            self.total_time += duration

            entry = {
                "suite": case.get("classname") or case.get("class") or "",
                "name": case.get("name", ""),
                "file": case.get("file"),
                "time": duration,
                "status": "passed",
                "message": None,
            }

            failure = case.find("failure")
            error = case.find("error")
            if failure is not None:
                self.total_failures += 1
                entry["status"] = "failed"
                entry["message"] = failure.get("message") or (failure.text or "").strip()
            elif error is not None:
                self.total_errors += 1
                entry["status"] = "error"
                entry["message"] = error.get("message") or (error.text or "").strip()
            elif case.find("skipped") is not None:
                entry["status"] = "skipped"

            cases.append(entry)

        return cases

    def totals(self) -> Dict[str, Any]:
        return {
            "tests": self.total_tests,
            "failures": self.total_failures,
            "errors": self.total_errors,
            "timetaken": round(self.total_time, 3),
        }

class Flake8Parser:
    """Parse flake8's default `path:line:col: CODE message` output."""

    def __init__(self, output: str):
        self.output = output
        self.total_errors = 0

    def parse(self) -> List[Dict[str, Any]]:
        issues = []
        for line in self.output.splitlines():
            match = FLAKE8_LINE.match(line.strip())
            if not match:
                continue
            issues.append({
                "file": match.group("file"),
                "line": int(match.group("line")),
                "column": int(match.group("column")),
                "code": match.group("code"),
                "message": match.group("message"),
            })
        self.total_errors = len(issues)
        return issues
