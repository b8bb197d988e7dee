"""Built-in demo pull request for running the pipeline without a repository."""

from __future__ import annotations

from pr_risk.change_set import ChangeSet, build_change_set

DEMO_NUMBER = 42
DEMO_TITLE = "Add OAuth2 login flow"
DEMO_AUTHOR = "alice"

SAMPLE_DIFF = """\
diff --git a/Cargo.toml b/Cargo.toml
index 1a2b3c4..5d6e7f8 100644
--- a/Cargo.toml
+++ b/Cargo.toml
@@ -8,3 +8,7 @@ edition = "2021"
 [dependencies]
 serde = { version = "1", features = ["derive"] }
 tokio = { version = "1", features = ["full"] }
+oauth2-lite = "0.3"
+base64-url = "2"
+reqwest = { version = "0.12", features = ["json"] }
+jsonwebtoken = "9"
diff --git a/src/auth/config.rs b/src/auth/config.rs
new file mode 100644
index 0000000..a1b2c3d
--- /dev/null
+++ b/src/auth/config.rs
@@ -0,0 +1,12 @@
+pub struct OAuthConfig {
+    pub client_id: String,
+    pub client_secret: String,
+}
+
+pub fn load_config() -> OAuthConfig {
+    let client_secret = "hardcoded_secret_value";
+    OAuthConfig {
+        client_id: std::env::var("CLIENT_ID").unwrap(),
+        client_secret: client_secret.to_string().clone(),
+    }
+}
diff --git a/src/auth/login.rs b/src/auth/login.rs
index 2b3c4d5..6e7f8a9 100644
--- a/src/auth/login.rs
+++ b/src/auth/login.rs
@@ -10,4 +10,11 @@ use crate::auth::config::load_config;
 pub async fn login(user: &str) -> Result<Session, AuthError> {
     let config = load_config();
-    let session = Session::anonymous();
+    let query = format!("SELECT * FROM users WHERE name = '{}'", user);
+    let row = db::query(&query).await.unwrap();
+    let session = Session::from_row(row);
+    // FIXME: tokens are never rotated
+    unsafe {
+        refresh_cache(session.id);
+    }
+    todo!("exchange authorization code")
 }
"""


def build_demo_change_set() -> ChangeSet:
    """Parse the sample diff into a change set with demo metadata."""
    return build_change_set(
        SAMPLE_DIFF,
        number=DEMO_NUMBER,
        title=DEMO_TITLE,
        author=DEMO_AUTHOR,
    )
