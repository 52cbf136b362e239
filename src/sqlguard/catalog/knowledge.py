# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Built-in best-practice guides and worked vulnerable examples."""

from __future__ import annotations

from typing import Final

from ..models.knowledge import CodeExample, KnowledgeItem, VulnerableExample

BUILTIN_KNOWLEDGE: Final[tuple[KnowledgeItem, ...]] = (
    KnowledgeItem(
        id="sk-001",
        category="Input Validation",
        title="Comprehensive Input Validation Strategies",
        description="Best practices for validating and sanitizing user input to prevent injection attacks",
        best_practices=(
            "Implement whitelist-based validation",
            "Validate data type, length, format, and range",
            "Sanitize input by removing or encoding special characters",
            "Use regular expressions for pattern matching",
            "Implement server-side validation (never rely solely on client-side)",
            "Log validation failures for security monitoring",
        ),
        code_examples=(
            CodeExample(
                language="python",
                framework="flask",
                vulnerable_code=(
                    "@app.get('/user/<user_id>')\n"
                    "def get_user(user_id):\n"
                    "    return db.execute(f\"SELECT * FROM users WHERE id = '{user_id}'\").fetchone()\n"
                ),
                secure_code=(
                    "@app.get('/user/<int:user_id>')\n"
                    "def get_user(user_id):\n"
                    "    if not 0 < user_id <= 999999:\n"
                    "        abort(400, 'Invalid user ID')\n"
                    "    return db.execute('SELECT * FROM users WHERE id = ?', (user_id,)).fetchone()\n"
                ),
                explanation="The secure version validates the input type and range, then binds it as a parameter",
            ),
        ),
        references=(
            "https://owasp.org/www-project-proactive-controls/",
            "https://cheatsheetseries.owasp.org/cheatsheets/Input_Validation_Cheat_Sheet.html",
        ),
    ),
    KnowledgeItem(
        id="sk-002",
        category="Parameterized Queries",
        title="Implementing Secure Database Queries",
        description="How to implement parameterized queries across different database technologies",
        best_practices=(
            "Always use parameterized queries or prepared statements",
            "Never concatenate user input directly into SQL strings",
            "Use ORM frameworks that provide built-in protection",
            "Implement query result limiting to prevent data exposure",
            "Use stored procedures with proper input validation",
        ),
        code_examples=(
            CodeExample(
                language="python",
                framework="sqlalchemy",
                vulnerable_code=(
                    "sql = f\"SELECT * FROM users WHERE email = '{email}' AND password = '{password}'\"\n"
                    "user = session.execute(text(sql)).first()\n"
                ),
                secure_code=(
                    "stmt = select(User).where(User.email == bindparam('email'))\n"
                    "user = session.execute(stmt, {'email': email}).scalar_one_or_none()\n"
                    "if user is None or not bcrypt.checkpw(password.encode(), user.password_hash):\n"
                    "    user = None\n"
                ),
                explanation="Bind values through the driver instead of formatting them into SQL, and compare password hashes",
            ),
        ),
        references=("https://cheatsheetseries.owasp.org/cheatsheets/Query_Parameterization_Cheat_Sheet.html",),
    ),
    KnowledgeItem(
        id="sk-003",
        category="Access Control",
        title="Database Access Control and Privilege Management",
        description="Implementing proper access controls and following the principle of least privilege",
        best_practices=(
            "Create separate database users for different application components",
            "Grant minimum necessary privileges to database users",
            "Use connection pooling with proper authentication",
            "Implement role-based access control (RBAC)",
            "Regularly audit database user privileges",
            "Use database-specific security features",
        ),
        code_examples=(
            CodeExample(
                language="sql",
                vulnerable_code="GRANT ALL PRIVILEGES ON *.* TO 'app_user'@'%' IDENTIFIED BY 'password';\n",
                secure_code=(
                    "CREATE USER 'app_read'@'localhost' IDENTIFIED BY 'strong_password';\n"
                    "GRANT SELECT ON app_db.users TO 'app_read'@'localhost';\n"
                    "GRANT INSERT, UPDATE ON app_db.user_sessions TO 'app_read'@'localhost';\n"
                    "FLUSH PRIVILEGES;\n"
                ),
                explanation="Create specific users with only the privileges they need for their function",
            ),
        ),
        references=(
            "https://dev.mysql.com/doc/refman/8.0/en/privilege-system.html",
            "https://www.postgresql.org/docs/current/user-manag.html",
        ),
    ),
)

BUILTIN_EXAMPLES: Final[tuple[VulnerableExample, ...]] = (
    VulnerableExample(
        id="ve-001",
        title="Login Bypass via SQL Injection",
        description="Classic authentication bypass using SQL injection in a login form",
        vulnerability_type="SQL Injection - Authentication Bypass",
        code=(
            "def authenticate(username, password):\n"
            "    sql = f\"SELECT * FROM users WHERE username = '{username}' AND password = '{password}'\"\n"
            "    return db.execute(sql).fetchone()\n"
        ),
        exploitation_scenario=(
            "Entering the password ' OR '1'='1' -- produces\n"
            "SELECT * FROM users WHERE username = 'admin' AND password = '' OR '1'='1' --'\n"
            "The OR '1'='1' condition is always true and the comment drops the rest of the statement."
        ),
        fix=(
            "def authenticate(username, password):\n"
            "    if not username or not password or len(username) > 100 or len(password) > 200:\n"
            "        return None\n"
            "    user = db.execute('SELECT * FROM users WHERE username = ?', (username,)).fetchone()\n"
            "    if user and bcrypt.checkpw(password.encode(), user['password_hash']):\n"
            "        return user\n"
            "    return None\n"
        ),
        prevention_measures=(
            "Use parameterized queries or ORM methods",
            "Implement proper input validation",
            "Hash passwords using bcrypt or similar",
            "Add rate limiting for login attempts",
            "Log failed authentication attempts",
            "Use multi-factor authentication",
        ),
    ),
    VulnerableExample(
        id="ve-002",
        title="Data Extraction via UNION Injection",
        description="Extracting sensitive data using UNION-based SQL injection",
        vulnerability_type="SQL Injection - Data Extraction",
        code=(
            "def search_products(term):\n"
            "    sql = f\"SELECT id, name, description, price FROM products WHERE name LIKE '%{term}%'\"\n"
            "    return db.execute(sql).fetchall()\n"
        ),
        exploitation_scenario=(
            "Searching for laptop' UNION SELECT id, username, email, password FROM users-- produces a query "
            "that appends every user's credentials to the product list."
        ),
        fix=(
            "def search_products(term):\n"
            "    if not term or len(term) > 50:\n"
            "        return []\n"
            "    sql = 'SELECT id, name, description, price FROM products WHERE name LIKE ?'\n"
            "    return db.execute(sql, (f'%{term}%',)).fetchall()\n"
        ),
        prevention_measures=(
            "Use parameterized queries",
            "Implement strict input validation",
            "Sanitize search terms",
            "Limit query results",
            "Use database views to restrict data access",
            "Monitor for suspicious query patterns",
        ),
    ),
    VulnerableExample(
        id="ve-003",
        title="Database Destruction via Stacked Queries",
        description="Malicious database operations using stacked query injection",
        vulnerability_type="SQL Injection - Database Manipulation",
        code=(
            "def update_profile(user_id, profile):\n"
            "    db.executescript(\n"
            "        f\"UPDATE users SET name = '{profile['name']}', email = '{profile['email']}' WHERE id = {user_id}\"\n"
            "    )\n"
        ),
        exploitation_scenario=(
            "A name of hacker'; DROP TABLE users; -- produces\n"
            "UPDATE users SET name = 'hacker'; DROP TABLE users; --', email = '...' WHERE id = 1\n"
            "The stacked statement drops the users table."
        ),
        fix=(
            "def update_profile(user_id: int, profile: ProfileUpdate):\n"
            "    db.execute(\n"
            "        'UPDATE users SET name = ?, email = ? WHERE id = ?',\n"
            "        (profile.name, profile.email, user_id),\n"
            "    )\n"
        ),
        prevention_measures=(
            "Disable multiple statement execution in database configuration",
            "Use ORM methods instead of raw queries",
            "Implement comprehensive input validation",
            "Use database transactions for data integrity",
            "Apply principle of least privilege for database users",
            "Regular database backups and monitoring",
        ),
    ),
)
