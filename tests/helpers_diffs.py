"""Sample unified diffs shared by tests."""

SIMPLE_DIFF = "\n".join(
    [
        "diff --git a/src/app.ts b/src/app.ts",
        "index 1111111..2222222 100644",
        "--- a/src/app.ts",
        "+++ b/src/app.ts",
        "@@ -1,3 +1,4 @@",
        " const a = 1;",
        '-console.log("old");',
        "+console.log(a);",
        "+let b = 2;",
        " export {};",
    ]
)

NEW_AND_DELETED_DIFF = "\n".join(
    [
        "diff --git a/tests/legacy.txt b/tests/legacy.txt",
        "deleted file mode 100644",
        "index 3333333..0000000",
        "--- a/tests/legacy.txt",
        "+++ /dev/null",
        "@@ -1,2 +0,0 @@",
        "-line one",
        "-line two",
        "diff --git a/docs/new.md b/docs/new.md",
        "new file mode 100644",
        "index 0000000..4444444",
        "--- /dev/null",
        "+++ b/docs/new.md",
        "@@ -0,0 +1,2 @@",
        "+# New",
        "+text",
    ]
)
