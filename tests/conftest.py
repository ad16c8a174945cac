"""Pytest configuration and shared fixtures."""

import asyncio
import json

import pytest

SAMPLE_APEX_PATCH = """\
@@ -1,6 +1,12 @@
 public with sharing class AccountService {
+    public static List<Account> findByName(String name) {
+        String query = 'SELECT Id FROM Account WHERE Name = \\'' + name + '\\'';
+        return Database.query(query);
+    }
+
     public static void touch(List<Account> accounts) {
         update accounts;
     }
 }
"""

SAMPLE_APEX_CLASS = """\
public with sharing class AccountService extends BaseService implements Auditable {
    public static void touch(List<Account> accounts) {
        AccountValidator validator = new AccountValidator();
        validator.check(accounts);
        AuditLogger.log('touch');
        update accounts;
    }
}
"""

SAMPLE_LWC_JS = """\
import { LightningElement, api } from 'lwc';
import { NavigationMixin } from 'lightning/navigation';
import getAccounts from '@salesforce/apex/AccountService.findByName';
import childPanel from 'c/childPanel';
import { formatDate } from 'c/dateUtils';

export default class AccountList extends NavigationMixin(LightningElement) {
    @api recordId;
}
"""

SAMPLE_AURA_CMP = """\
<aura:component implements="flexipage:availableForAllPageTypes">
    <lightning:card title="Accounts">
        <c:accountTile account="{!v.account}"/>
        <c:accountTile account="{!v.other}"/>
    </lightning:card>
</aura:component>
"""


def make_response(feedback: list[dict], **extra) -> str:
    """Build a structured provider response."""
    payload = {
        "feedback": feedback,
        "summary": {
            "totalIssues": len(feedback),
            "criticalIssues": 0,
            "warnings": 0,
            "improvements": 0,
            "categories": {},
            "recommendations": extra.pop("recommendations", []),
        },
    }
    payload.update(extra)
    return json.dumps(payload)


@pytest.fixture
def sample_apex_patch() -> str:
    """A diff adding a SOQL injection to an Apex class."""
    return SAMPLE_APEX_PATCH


@pytest.fixture
def sample_apex_class() -> str:
    """An Apex class with inheritance, instantiation and static calls."""
    return SAMPLE_APEX_CLASS


@pytest.fixture
def sample_lwc_js() -> str:
    """An LWC module mixing platform and custom imports."""
    return SAMPLE_LWC_JS


@pytest.fixture
def sample_aura_cmp() -> str:
    """An Aura component using custom and platform tags."""
    return SAMPLE_AURA_CMP


@pytest.fixture
def critical_response() -> str:
    """Structured response with one critical security finding at line 5."""
    return make_response(
        [
            {
                "line": 5,
                "message": "SOQL injection: user input is concatenated into a dynamic query",
                "severity": "critical",
                "category": "security",
                "file": "whatever.cls",
                "suggestion": "Use a bind variable instead of string concatenation.",
            }
        ]
    )


@pytest.fixture
def empty_response() -> str:
    """Structured response with no findings."""
    return make_response([])


class StubAdapter:
    """Provider adapter double with a scripted review outcome."""

    def __init__(self, name, outcome=None, error=None, delay=0.0, calls=None):
        self.name = name
        self.model = f"{name}-model"
        self.available = True
        self.outcome = outcome
        self.error = error
        self.delay = delay
        self.calls = calls if calls is not None else []
        self.requests = []

    async def review(self, prompt, code, context):
        self.calls.append(self.name)
        self.requests.append((prompt, code, context))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.outcome

    async def close(self):
        pass
