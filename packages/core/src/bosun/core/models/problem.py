"""Problem / ProblemSet 模型

Problem 创建后不可变；ProblemSet 在一次校验过程中按顺序累积。
空 ProblemSet 表示"没有发现问题"，不表示"未执行校验"。
"""

from pydantic import BaseModel, ConfigDict, Field

from .enums import Severity


class Problem(BaseModel):
    """单条校验发现"""

    model_config = ConfigDict(frozen=True)

    severity: Severity = Field(description="严重度")
    message: str = Field(description="可读描述")
    remediation: str | None = Field(default=None, description="修复建议")
    location: str | None = Field(
        default=None,
        description="出问题的配置节点，如 security.authn.ldap",
    )
    options: list[str] = Field(default_factory=list, description="可选的建议取值")


class ProblemSet(BaseModel):
    """一次校验过程累积的有序问题集合"""

    problems: list[Problem] = Field(default_factory=list)

    def add_problem(self, problem: Problem) -> "ProblemSet":
        self.problems.append(problem)
        return self

    def add(
        self,
        severity: Severity,
        message: str,
        *,
        remediation: str | None = None,
        location: str | None = None,
        options: list[str] | None = None,
    ) -> "ProblemSet":
        """构造并追加一条 Problem"""
        return self.add_problem(
            Problem(
                severity=severity,
                message=message,
                remediation=remediation,
                location=location,
                options=options or [],
            )
        )

    def extend(self, other: "ProblemSet") -> "ProblemSet":
        self.problems.extend(other.problems)
        return self

    def filter_by_severity(self, threshold: Severity) -> "ProblemSet":
        """返回严重度 >= threshold 的新集合（保持原顺序）"""
        return ProblemSet(
            problems=[p for p in self.problems if p.severity.at_least(threshold)]
        )

    def has_severity_at_least(self, threshold: Severity) -> bool:
        return any(p.severity.at_least(threshold) for p in self.problems)

    def max_severity(self) -> Severity:
        """集合内最高严重度，空集合为 NONE"""
        highest = Severity.NONE
        for problem in self.problems:
            if problem.severity.rank > highest.rank:
                highest = problem.severity
        return highest

    def is_empty(self) -> bool:
        return not self.problems

    def __len__(self) -> int:
        return len(self.problems)
