"""client/ -- Python client for the account API and the login/register flow.

Layer rule: imports only stdlib, third-party libraries, and core/. The client
talks to the server over HTTP and never imports api/, auth/, or activity/.
"""
