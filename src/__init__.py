"""WordPath: vocabulary learning engine and terminal front end."""
